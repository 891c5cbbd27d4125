from typing import Callable, List, Optional, Sequence

from dts2externs.frontend import AbstractFrontEnd, SourceFile, SyntheticSymbol
from dts2externs.handlers import seed_synthetic
from dts2externs.logger import logger
from dts2externs.models import CONSOLE_MEMBER_NAMES, CONSOLE_NAME
from dts2externs.registry import OutputRegistry
from dts2externs.serializers import serialize_registry
from dts2externs.settings import GeneratorSettings
from dts2externs.walker import TraversalContext, visit_source_file

FrontEndFactory = Callable[[], AbstractFrontEnd]


def _default_frontend() -> AbstractFrontEnd:
    from dts2externs.lang.typescript import TypeScriptFrontEnd

    return TypeScriptFrontEnd()


class ExternsGenerator:
    """
    Parse declaration files and render externs for them.

    Every call to `generate` owns a fresh registry and a fresh front-end
    program, so one generator may be run repeatedly.
    """

    def __init__(
        self,
        file_names: Sequence[str],
        settings: Optional[GeneratorSettings] = None,
        frontend_factory: Optional[FrontEndFactory] = None,
    ) -> None:
        self.file_names: List[str] = [str(f) for f in file_names]
        self.settings = settings or GeneratorSettings()
        self.frontend_factory = frontend_factory or _default_frontend

    def should_process(self, source_file: SourceFile) -> bool:
        # default libraries are never processed
        if source_file.has_no_default_lib:
            return False
        return self.settings.allow_ts or source_file.is_declaration_file

    def generate(self) -> str:
        registry = OutputRegistry(debug=self.settings.debug)

        if self.settings.add_console:
            seed_synthetic(
                registry,
                SyntheticSymbol(CONSOLE_NAME),
                [SyntheticSymbol(name) for name in CONSOLE_MEMBER_NAMES],
            )

        frontend = self.frontend_factory()
        for source_file in frontend.create_program(self.file_names):
            if not self.should_process(source_file):
                if self.settings.debug:
                    logger.info("Skipping file", path=source_file.file_name)
                continue

            if self.settings.list_files:
                logger.info("Parsing file", path=source_file.file_name)

            ctx = TraversalContext(
                frontend=frontend,
                registry=registry,
                settings=self.settings,
                is_declaration_file=source_file.is_declaration_file,
                source_root=source_file.root,
            )
            visit_source_file(ctx, source_file.root)

        return serialize_registry(
            registry,
            style=self.settings.style,
            keep_comments=self.settings.keep_comments,
        )


def generate(
    file_names: Sequence[str],
    settings: Optional[GeneratorSettings] = None,
    **overrides,
) -> str:
    """
    Generate externs for *file_names*. Keyword overrides are applied on top of
    *settings* (or the defaults), e.g. ``generate(files, style="proto")``.
    """
    if settings is None:
        settings = GeneratorSettings(**overrides)
    elif overrides:
        settings = GeneratorSettings(**{**settings.model_dump(), **overrides})
    return ExternsGenerator(file_names, settings).generate()
