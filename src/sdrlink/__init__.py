"""SdrLink - connection orchestration for networked SDR radios."""

__version__ = "0.3.0"
