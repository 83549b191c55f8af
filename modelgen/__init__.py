"""Generate typed models from the field tables in Discord's API documentation."""

from .config import ConfigError, ModelGenConfig, load_config
from .driver import GeneratorDriver
from .emitter import EmittedModel, ModelEmitter
from .errors import (
    DuplicateFieldError,
    GenerationIssue,
    MalformedRow,
    ModelGenError,
    NoModelsProducedError,
    SourceUnavailable,
    UnresolvedType,
)
from .mapping import TypeMapper
from .models import (
    DocumentRef,
    FieldRecord,
    GenerationReport,
    ModelDefinition,
    ModelField,
    ResolvedType,
    TypeKind,
)
from .parsing import TableParser
from .sources import DocSource

__all__ = [
    "ConfigError",
    "DocSource",
    "DocumentRef",
    "DuplicateFieldError",
    "EmittedModel",
    "FieldRecord",
    "GenerationIssue",
    "GenerationReport",
    "GeneratorDriver",
    "MalformedRow",
    "ModelDefinition",
    "ModelEmitter",
    "ModelField",
    "ModelGenConfig",
    "ModelGenError",
    "NoModelsProducedError",
    "ResolvedType",
    "SourceUnavailable",
    "TableParser",
    "TypeKind",
    "TypeMapper",
    "UnresolvedType",
    "load_config",
]
