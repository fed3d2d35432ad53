# ==============================================================================
# FORMAT DISPATCH MODULE
# ==============================================================================
# Decides how each resolved entry is written, and writes it.
#
# The decision is keyed on the extension of the entry's final path
# component (lower-cased, no dot; "" when there is none) and looked up in a
# DispatchTable of strategies:
#
#   text          pass-through of text files      -> <id>.txt
#   structured    decoder + indented JSON          -> <id>.json
#   unsupported   no structured form
#
# Qualified rules (extension + predicate on the key) are checked before the
# plain rule of the same extension, e.g. compiled Lua is only decoded below
# data/luafiles514/.
#
# Independently of the strategy, the active ExportMode adds:
#   raw       the untouched bytes of every member key -> <member key>
#   texture   PNG renderings, when a renderer exists  -> <id>.png / <id>.NNN.png
#
# Every error raised while reading, decoding or writing one entry is caught
# here and turned into a failed DispatchOutcome; nothing propagates to the
# driver.
# ==============================================================================

import json
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..core.config import Config
from ..core.hasher import OutputHasher
from ..parsers import (
    ResourceDecoder, to_json_ready,
    PALParser, SPRParser, ACTParser, GATParser, RSWParser, LUBParser,
    SpriteBundleDecoder,
    TextureRenderer, PillowImageRenderer, SpriteFrameRenderer,
    BundleFrameRenderer, PaletteRenderer,
)
from .directives import ExportMode
from .resolver import ResolvedEntry, split_extension
from .sink import OutputSink


# ==============================================================================
# DEFAULT FORMAT LISTS
# ==============================================================================

TEXT_EXTENSIONS = (
    "ini", "txt", "log", "po", "bat", "dat", "cfg", "ide", "ipl", "zon",
    "xml", "h", "uproject", "uplugin", "upluginmanifest", "csv", "json",
    "archive", "manifest", "lua", "yml", "yaml", "conf", "html", "htm",
)

IMAGE_EXTENSIONS = ("bmp", "tga", "png", "jpg", "jpeg")

LUA_BYTECODE_DIRECTORY = "luafiles514"

STATUS_SUCCESS = "success"
STATUS_UNSUPPORTED = "unsupported"
STATUS_FAILED = "failed"


# ==============================================================================
# OUTPUT SETTINGS
# ==============================================================================

@dataclass(frozen=True)
class OutputSettings:
    """Naming and encoding of dispatcher outputs."""
    structured_suffix: str = ".json"
    text_suffix: str = ".txt"
    texture_suffix: str = ".png"
    json_indent: int = 2
    text_encoding: str = "utf-8"

    @classmethod
    def from_config(cls, config: Config) -> "OutputSettings":
        return cls(
            structured_suffix=config.structured_suffix,
            text_suffix=config.text_suffix,
            texture_suffix=config.texture_suffix,
            json_indent=config.json_indent,
            text_encoding=config.text_encoding,
        )


# (relative path, content)
Output = Tuple[str, Union[bytes, str]]


# ==============================================================================
# STRATEGIES
# ==============================================================================

class Strategy(ABC):
    """How an entry is turned into its structured/text representation."""

    kind = "unsupported"

    @property
    def description(self) -> str:
        return self.kind

    @abstractmethod
    def produce(self, archive, identifier: str, settings: OutputSettings) -> List[Output]:
        """
        Build the outputs of one entry.

        Returns:
            Outputs to write; empty when the strategy has no representation

        Raises:
            Any read or decode error; the dispatcher records it as a failure
        """
        pass


class TextStrategy(Strategy):
    """Text files are decoded strictly and written back as UTF-8."""

    kind = "text"

    def produce(self, archive, identifier: str, settings: OutputSettings) -> List[Output]:
        data = archive.read_raw_bytes(identifier)
        text = data.decode(settings.text_encoding)
        return [(identifier + settings.text_suffix, text.encode('utf-8'))]


class StructuredStrategy(Strategy):
    """Decoded objects serialized as indented, key-sorted JSON."""

    kind = "structured"

    def __init__(self, decoder: ResourceDecoder):
        self.decoder = decoder

    @property
    def description(self) -> str:
        return f"structured ({self.decoder.name})"

    def produce(self, archive, identifier: str, settings: OutputSettings) -> List[Output]:
        decoded = archive.decode_resource(identifier, self.decoder)
        document = json.dumps(
            to_json_ready(decoded),
            indent=settings.json_indent,
            sort_keys=True,
            ensure_ascii=False,
        )
        return [(identifier + settings.structured_suffix, (document + "\n").encode('utf-8'))]


class UnsupportedStrategy(Strategy):

    kind = "unsupported"

    def produce(self, archive, identifier: str, settings: OutputSettings) -> List[Output]:
        return []


UNSUPPORTED = UnsupportedStrategy()


@dataclass
class QualifiedRule:
    """A strategy that applies only to keys accepted by `predicate`."""
    extension: str
    predicate: Callable[[str], bool]
    strategy: Strategy
    label: str = ""


# ==============================================================================
# DISPATCH TABLE
# ==============================================================================

class DispatchTable:
    """
    Registry of per-extension strategies and texture renderers.

    Usage:
        table = DispatchTable()
        table.register("pal", StructuredStrategy(PALParser()))
        strategy = table.lookup("data/palette/a.pal")
    """

    def __init__(self, default: Strategy = UNSUPPORTED):
        self.default = default
        self._rules: Dict[str, Strategy] = {}
        self._qualified: Dict[str, List[QualifiedRule]] = {}
        self._renderers: Dict[str, TextureRenderer] = {}

    def register(self, extension: str, strategy: Strategy):
        self._rules[_normalize_extension(extension)] = strategy

    def register_qualified(self, extension: str, predicate: Callable[[str], bool],
                           strategy: Strategy, label: str = ""):
        """Register a rule checked before the plain rule of `extension`."""
        extension = _normalize_extension(extension)
        self._qualified.setdefault(extension, []).append(
            QualifiedRule(extension, predicate, strategy, label)
        )

    def register_texture(self, extension: str, renderer: TextureRenderer):
        self._renderers[_normalize_extension(extension)] = renderer

    def lookup(self, identifier: str) -> Strategy:
        """Strategy for an identifier: qualified rules, plain rule, default."""
        extension = split_extension(identifier)[1]
        for rule in self._qualified.get(extension, []):
            if rule.predicate(identifier):
                return rule.strategy
        return self._rules.get(extension, self.default)

    def texture_renderer(self, identifier: str) -> Optional[TextureRenderer]:
        return self._renderers.get(split_extension(identifier)[1])

    def describe(self) -> List[Tuple[str, str]]:
        """
        Human-readable table rows (extension, handling), sorted by extension.

        The extensionless category is shown as "(none)".
        """
        rows = []
        extensions = sorted(set(self._rules) | set(self._qualified) | set(self._renderers))
        for extension in extensions:
            label = extension or "(none)"
            parts = []
            for rule in self._qualified.get(extension, []):
                parts.append(f"{rule.strategy.description} if {rule.label or 'qualified'}")
            strategy = self._rules.get(extension)
            if strategy is not None:
                parts.append(strategy.description)
            elif extension in self._qualified:
                parts.append(f"otherwise {self.default.description}")
            renderer = self._renderers.get(extension)
            if renderer is not None:
                parts.append(f"texture ({renderer.name})")
            rows.append((label, ", ".join(parts)))
        return rows


def _normalize_extension(extension: str) -> str:
    return extension.lower().lstrip('.')


def build_default_table() -> DispatchTable:
    """The dispatch table for Ragnarok Online client data."""
    table = DispatchTable()

    text = TextStrategy()
    for extension in TEXT_EXTENSIONS:
        table.register(extension, text)

    table.register("pal", StructuredStrategy(PALParser()))
    table.register("spr", StructuredStrategy(SPRParser()))
    table.register("act", StructuredStrategy(ACTParser()))
    table.register("gat", StructuredStrategy(GATParser()))
    table.register("rsw", StructuredStrategy(RSWParser()))
    table.register("", StructuredStrategy(SpriteBundleDecoder()))

    table.register_qualified(
        "lub",
        lambda key: LUA_BYTECODE_DIRECTORY in key.lower(),
        StructuredStrategy(LUBParser()),
        label=f"under {LUA_BYTECODE_DIRECTORY}/",
    )

    image = PillowImageRenderer()
    for extension in IMAGE_EXTENSIONS:
        table.register_texture(extension, image)
    table.register_texture("spr", SpriteFrameRenderer())
    table.register_texture("pal", PaletteRenderer())
    table.register_texture("", BundleFrameRenderer())

    return table


# ==============================================================================
# DISPATCH OUTCOME
# ==============================================================================

@dataclass
class DispatchOutcome:
    """
    Result of dispatching one entry.

    Attributes:
        identifier (str): Entry identifier
        status (str):     success, unsupported or failed
        outputs (list):   Relative paths written
        cause (str):      Failure causes, "; "-separated (failed only)
        detail (str):     What was written, for diagnostics
        digest (str):     MD5 over all bytes written, None if nothing was
    """
    identifier: str
    status: str
    outputs: List[str] = field(default_factory=list)
    cause: Optional[str] = None
    detail: str = ""
    digest: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED


# ==============================================================================
# DISPATCHER
# ==============================================================================

class FormatDispatcher:
    """
    Writes the representations of resolved entries.

    Attributes:
        archive:  ArchiveProvider entries are read from
        sink:     OutputSink outputs are written to
        table:    DispatchTable in use
        settings: OutputSettings (suffixes, JSON indent, text encoding)
    """

    def __init__(self, archive, sink: OutputSink, table: Optional[DispatchTable] = None,
                 settings: Optional[OutputSettings] = None, debug: bool = False):
        self.archive = archive
        self.sink = sink
        self.table = table or build_default_table()
        self.settings = settings or OutputSettings()
        self.debug = debug
        self.hasher = OutputHasher()

    def dispatch(self, entry: ResolvedEntry, mode: ExportMode) -> DispatchOutcome:
        """
        Export one entry under a mode snapshot.

        Args:
            entry: Resolved entry
            mode: Mode captured when the entry's pattern was resolved

        Returns:
            The outcome; never raises for per-entry problems
        """
        identifier = entry.identifier
        outputs: List[str] = []
        written: List[str] = []
        failures: List[str] = []
        chunks: List[bytes] = []

        def emit(kind: str, path: str, content: Union[bytes, str]):
            data = content.encode('utf-8') if isinstance(content, str) else content
            self.sink.write(path, data)
            outputs.append(path)
            written.append(kind)
            chunks.append(data)

        if mode.structured:
            strategy = self.table.lookup(identifier)
            try:
                for path, content in strategy.produce(self.archive, identifier, self.settings):
                    emit(strategy.kind, path, content)
            except Exception as e:
                failures.append(self._describe_failure(strategy.kind, e))

        if mode.texture:
            renderer = self.table.texture_renderer(identifier)
            if renderer is not None:
                try:
                    for image in renderer.render(self.archive, identifier):
                        emit("texture", self._texture_path(identifier, image.frame), image.png)
                except Exception as e:
                    failures.append(self._describe_failure("texture", e))

        if mode.raw:
            for member in entry.members:
                try:
                    emit("raw", member, self.archive.read_raw_bytes(member))
                except Exception as e:
                    failures.append(self._describe_failure("raw", e))

        if failures:
            status = STATUS_FAILED
        elif outputs:
            status = STATUS_SUCCESS
        else:
            status = STATUS_UNSUPPORTED

        return DispatchOutcome(
            identifier=identifier,
            status=status,
            outputs=outputs,
            cause="; ".join(failures) if failures else None,
            detail=_summarize(written),
            digest=self.hasher.hash_bytes_md5(b"".join(chunks)) if outputs else None,
        )

    def _texture_path(self, identifier: str, frame: Optional[int]) -> str:
        if frame is None:
            return identifier + self.settings.texture_suffix
        return f"{identifier}.{frame:03d}{self.settings.texture_suffix}"

    def _describe_failure(self, kind: str, error: Exception) -> str:
        if self.debug:
            traceback.print_exc()
        return f"{kind}: {error}"


def _summarize(kinds: List[str]) -> str:
    """"structured, raw x2" style summary of written output kinds."""
    counts: Dict[str, int] = {}
    for kind in kinds:
        counts[kind] = counts.get(kind, 0) + 1
    return ", ".join(
        kind if count == 1 else f"{kind} x{count}" for kind, count in counts.items()
    )
