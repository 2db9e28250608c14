"""Schema module - contracts, legacy migration and validation of records."""

from ctxmigrate.schema.contract import SchemaContract, load_contract, load_contracts
from ctxmigrate.schema.normalizer import MigrationOutcome, SchemaNormalizer, ValidationResult

__all__ = [
    "MigrationOutcome",
    "SchemaContract",
    "SchemaNormalizer",
    "ValidationResult",
    "load_contract",
    "load_contracts",
]
