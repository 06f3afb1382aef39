"""
Storage Services

File-backed record stores and the in-memory repositories built on them.
"""

from .record_store import RecordStore, RecordCodec, StorageFailure, RecordFormatError
from .repositories import KeyedRepository, CustomerRepository, PremisesRepository

__all__ = [
    'RecordStore',
    'RecordCodec',
    'StorageFailure',
    'RecordFormatError',
    'KeyedRepository',
    'CustomerRepository',
    'PremisesRepository',
]
