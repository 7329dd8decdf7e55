"""Native JSON flow formatter."""

from __future__ import annotations

import json
from typing import Any

from flowformats.config import FormatterConfig
from flowformats.formats.flowjson.parser import DEFAULT_TITLE
from flowformats.ir.flow import FlowDefinition


class JsonFlowFormatter:
    def __init__(self, config: FormatterConfig | None = None) -> None:
        self.config = config or FormatterConfig()

    def format(self, flow: FlowDefinition, **options: Any) -> str:
        data = flow.to_dict()
        data["title"] = flow.title or DEFAULT_TITLE
        return json.dumps(
            data,
            indent=options.get("indent", self.config.indent),
            sort_keys=options.get("sort_keys", self.config.sort_keys),
            ensure_ascii=False,
        )
