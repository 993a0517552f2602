"""
Core: aritmética decimal, tributos, modelos de domínio e contratos.

Nada aqui faz I/O nem depende de banco, rede ou UI.
"""
