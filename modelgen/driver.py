"""Pipeline orchestration: fetch, parse, resolve, emit and write models."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import ModelGenConfig
from .emitter import EmittedModel, ModelEmitter, module_name
from .errors import (
    DUPLICATE_FIELD,
    DUPLICATE_MODEL,
    UNRESOLVED_TYPE,
    DuplicateFieldError,
    GenerationIssue,
    NoModelsProducedError,
    SourceUnavailable,
)
from .logging import get_logger, record_issue
from .mapping import TypeMapper
from .models import DocumentRef, GenerationReport, ModelDefinition, ModelField
from .parsing import ParsedTable, TableParser
from .sources import DocSource


@dataclass(frozen=True)
class _ArenaEntry:
    document: DocumentRef
    table: ParsedTable


class GeneratorDriver:
    """Runs the two-pass generation over the configured documents.

    Pass one fetches and parses every document, filling a name-keyed arena of
    tables. Pass two resolves field types against the complete arena, so a
    reference to a model defined in a later document is not reported as
    unresolved. Per-document and per-model failures are recorded in the
    report; only a run that produces no models at all raises.
    """

    def __init__(
        self,
        config: ModelGenConfig,
        *,
        source: DocSource | None = None,
        parser: TableParser | None = None,
        mapper: TypeMapper | None = None,
        emitter: ModelEmitter | None = None,
    ) -> None:
        self.config = config
        self.source = source or DocSource(
            config.docs_root,
            cache_dir=config.cache_dir,
            timeout=config.request_timeout,
        )
        self.parser = parser or TableParser()
        self.mapper = mapper or TypeMapper(config.aliases)
        self.emitter = emitter or ModelEmitter(
            config.templates_dir,
            type_overrides=config.types,
            docs_root=config.docs_root,
            docs_site=config.docs_site,
        )
        self.logger = get_logger("driver")

    def run(
        self,
        *,
        should_stop: Optional[Callable[[], bool]] = None,
        dry_run: bool = False,
    ) -> GenerationReport:
        report = GenerationReport()
        documents = self.config.document_refs()
        self.logger.info("Generating models from %d documents", len(documents))

        arena = self._collect(documents, report, should_stop)
        definitions = self._resolve(arena, report)
        known = set(definitions)
        emitted = [self.emitter.emit(model, known) for model in definitions.values()]

        if not emitted:
            self.logger.error("No models produced: %s", report.summary())
            raise NoModelsProducedError(report)

        report.models = [model.name for model in emitted]
        if not dry_run:
            self._write(emitted, report)
        self.logger.info("Generation finished: %s", report.summary())
        return report

    def _collect(
        self,
        documents: List[DocumentRef],
        report: GenerationReport,
        should_stop: Optional[Callable[[], bool]],
    ) -> Dict[str, _ArenaEntry]:
        arena: Dict[str, _ArenaEntry] = {}
        for ref in documents:
            if should_stop is not None and should_stop():
                self.logger.warning("Stopping before %s at caller request", ref)
                report.cancelled = True
                break
            try:
                text = self.source.fetch(ref)
            except SourceUnavailable as exc:
                self.logger.warning("Skipping %s: %s", ref, exc.reason)
                report.failed.append((ref, exc.reason))
                continue

            parsed = self.parser.parse(text, document=ref.path)
            report.succeeded.append(ref)
            report.issues.extend(parsed.issues)
            self.logger.debug("%s: %d field tables", ref, len(parsed.tables))

            for table in parsed.tables:
                existing = arena.get(table.model_name)
                if existing is not None:
                    reason = f"already defined in {existing.document}"
                    self._skip_model(report, table.model_name, reason, DUPLICATE_MODEL, ref.path)
                    continue
                arena[table.model_name] = _ArenaEntry(document=ref, table=table)
        return arena

    def _resolve(
        self, arena: Dict[str, _ArenaEntry], report: GenerationReport
    ) -> Dict[str, ModelDefinition]:
        definitions: Dict[str, ModelDefinition] = {}
        modules: Dict[str, str] = {}
        for name, entry in arena.items():
            model = ModelDefinition(
                name=name,
                document=entry.document.path,
                heading=entry.table.heading,
                anchor=entry.table.anchor,
                fields=tuple(
                    ModelField(record=record, type=self.mapper.resolve(record.raw_type))
                    for record in entry.table.records
                ),
            )
            try:
                self.emitter.check(model)
            except DuplicateFieldError as exc:
                self._skip_model(report, name, str(exc), DUPLICATE_FIELD, model.document)
                continue
            module = module_name(name)
            if module in modules:
                reason = f"module {module}.py already holds {modules[module]}"
                self._skip_model(report, name, reason, DUPLICATE_MODEL, model.document)
                continue
            modules[module] = name
            definitions[name] = model

        for model in definitions.values():
            for item in model.fields:
                self._check_field(model, item, definitions, report)
        return definitions

    def _check_field(
        self,
        model: ModelDefinition,
        item: ModelField,
        known: Dict[str, ModelDefinition],
        report: GenerationReport,
    ) -> None:
        messages = [
            f"field '{item.name}': {unknown.detail} (emitted as opaque payload)"
            for unknown in item.type.unknowns()
        ]
        messages.extend(
            f"field '{item.name}': unresolved reference to model '{name}'"
            for name in item.type.references()
            if name not in known
        )
        for message in messages:
            record_issue(
                self.logger,
                report.issues,
                GenerationIssue(
                    kind=UNRESOLVED_TYPE,
                    message=message,
                    document=model.document,
                    model=model.name,
                    line=item.record.line,
                ),
            )

    def _skip_model(
        self, report: GenerationReport, name: str, reason: str, kind: str, document: str
    ) -> None:
        report.skipped_models.append((name, reason))
        record_issue(
            self.logger,
            report.issues,
            GenerationIssue(kind=kind, message=f"skipped: {reason}", document=document, model=name),
        )

    def _write(self, emitted: List[EmittedModel], report: GenerationReport) -> None:
        output_dir = Path(self.config.output_dir or self.config.root)
        output_dir.mkdir(parents=True, exist_ok=True)
        for model in emitted:
            target = output_dir / model.filename
            target.write_text(model.source, encoding="utf-8")
            report.written.append(target)
        package_init = output_dir / "__init__.py"
        package_init.write_text(
            self.emitter.emit_package(emitted, package=self.config.package),
            encoding="utf-8",
        )
        report.written.append(package_init)
        self.logger.info("Wrote %d model modules to %s", len(emitted), output_dir)


__all__ = ["GeneratorDriver"]
