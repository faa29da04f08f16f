"""Output rendering and formatting utilities.

This module provides output formatters for displaying pipeline results
and upstream records as tables, JSON, or YAML.
"""

import sys
import json
import os
from typing import Any, Dict, List, Optional, Union

import yaml
from rich.console import Console
from rich.table import Table
from rich import box

from .exceptions import ValidationError

FORMATS = ("table", "json", "yaml")


class OutputFormatter:
    """Main output formatter that handles multiple output formats."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize output formatter.

        Args:
            console: Rich console instance. If None, creates a new one.
        """
        self.console = console or Console()

    def determine_format(self, format_override: Optional[str] = None) -> str:
        """Determine the output format to use.

        Args:
            format_override: Explicit format override

        Returns:
            Format name (table, json, yaml)
        """
        if format_override:
            return format_override.lower()

        env_format = os.environ.get("PRESSPIPE_OUTPUT_FORMAT")
        if env_format:
            return env_format.lower()

        # Auto-detect based on terminal
        if sys.stdout.isatty():
            return "table"
        else:
            return "json"

    def render(self, data: Any, format: Optional[str] = None, title: Optional[str] = None) -> None:
        """Render data in the specified format.

        Args:
            data: Data to render
            format: Output format (table, json, yaml)
            title: Table title

        Raises:
            ValidationError: For an unknown format
        """
        format_name = self.determine_format(format)

        if format_name == "table":
            self.render_table(data, title=title)
        elif format_name == "json":
            self.render_json(data)
        elif format_name == "yaml":
            self.render_yaml(data)
        else:
            raise ValidationError(f"Unknown output format: {format_name}", field="output")

    def render_table(
        self,
        data: Union[List[Dict[str, Any]], Dict[str, Any]],
        title: Optional[str] = None,
        columns: Optional[List[str]] = None,
    ) -> None:
        """Render data as a table using Rich.

        A single mapping is shown as a field/value table, a list of mappings
        as one row per item.
        """
        if not data:
            self.console.print("[dim]No data to display[/dim]")
            return

        if isinstance(data, dict):
            table = Table(title=title, box=box.ROUNDED, show_header=True)
            table.add_column("Field", style="cyan", no_wrap=True)
            table.add_column("Value", overflow="fold")
            for key, value in data.items():
                table.add_row(key.replace("_", " ").title(), self._cell(value))
            self.console.print(table)
            return

        if not columns:
            columns = []
            for item in data:
                for key in item.keys():
                    if key not in columns:
                        columns.append(key)

        table = Table(title=title, box=box.ROUNDED)
        for col in columns:
            table.add_column(col.replace("_", " ").title(), overflow="fold")
        for item in data:
            table.add_row(*[self._cell(item.get(col)) for col in columns])
        self.console.print(table)

    def render_json(self, data: Any, pretty: bool = True, indent: int = 2) -> None:
        """Render data as JSON."""
        try:
            output = json.dumps(
                data,
                indent=indent if pretty else None,
                ensure_ascii=False,
                default=str,
            )
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Failed to serialize data to JSON: {e}")
        print(output)

    def render_yaml(self, data: Any) -> None:
        """Render data as YAML."""
        try:
            print(yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))
        except yaml.YAMLError as e:
            raise ValidationError(f"Failed to serialize data to YAML: {e}")

    @staticmethod
    def _cell(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "✓" if value else "✗"
        if isinstance(value, dict):
            # Upstream rendered fields
            if "rendered" in value:
                return str(value["rendered"])
            return json.dumps(value, ensure_ascii=False, default=str)
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return str(value)
