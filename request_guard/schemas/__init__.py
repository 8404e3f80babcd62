from .order import ORDER_QUERY_SCHEMA, ORDER_SCHEMA

__all__ = ['ORDER_QUERY_SCHEMA', 'ORDER_SCHEMA']
