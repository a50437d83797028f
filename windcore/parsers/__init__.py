from __future__ import annotations

from typing import Dict, Type

from ..entities import StationConfig
from .base import SourceParser
from .html_table import HtmlTableParser
from .json_direct import JsonDirectParser
from .json_enhanced import JsonEnhancedParser
from .packed_hex import PackedHexParser

PARSERS: Dict[str, Type[SourceParser]] = {
    HtmlTableParser.name: HtmlTableParser,
    PackedHexParser.name: PackedHexParser,
    JsonDirectParser.name: JsonDirectParser,
    JsonEnhancedParser.name: JsonEnhancedParser,
}


def build_parser(config: StationConfig) -> SourceParser:
    try:
        parser_cls = PARSERS[config.parser]
    except KeyError as exc:
        raise ValueError(f"Station {config.id} uses unknown parser {config.parser!r}") from exc
    return parser_cls(config.id, **dict(config.options))


__all__ = [
    "HtmlTableParser",
    "JsonDirectParser",
    "JsonEnhancedParser",
    "PARSERS",
    "PackedHexParser",
    "SourceParser",
    "build_parser",
]
