# statdialogs/backend/output/factory.py

from typing import Any, Callable, Dict, Optional

from .writers import output_to_json, output_to_yaml


class OutputFactory:
    """Resolves an export format name to a writer callable."""

    _pretty_print_formats = {"json"}

    _output_methods: Dict[str, Callable[..., None]] = {
        "json": output_to_json,
        "yaml": output_to_yaml,
    }

    @classmethod
    def available_formats(cls) -> list:
        return sorted(cls._output_methods)

    @classmethod
    def get_output(cls, format: str, config: Optional[Dict[str, Any]] = None) -> Callable[[Dict[str, Any], str], None]:
        """Return ``writer(data, output_file)`` for ``format``.

        Raises:
            ValueError: if the format is unknown.
        """
        try:
            method = cls._output_methods[format]
        except KeyError:
            raise ValueError(
                f"Unknown output format: {format}. Available formats are: {', '.join(cls.available_formats())}."
            ) from None

        format_config = {} if config is None else dict(config)
        if format not in cls._pretty_print_formats:
            format_config.pop("pretty_print", None)
        return lambda data, output_file: method(data, output_file, format_config)
