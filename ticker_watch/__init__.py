"""Ticker Watch - assinaturas de cotação com fila de vazão limitada"""

__version__ = "1.0.0"
