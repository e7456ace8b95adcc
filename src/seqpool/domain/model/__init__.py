from ._pool1d_mixin import GlobalPool1dConfigMixin

__all__ = [GlobalPool1dConfigMixin.__name__]
