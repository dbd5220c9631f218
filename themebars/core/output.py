# themebars/core/output.py
import json
import sys
from pathlib import Path
from typing import Any, Optional

import structlog

from themebars.config.settings import OutputFormat
from themebars.exceptions import OutputError

log = structlog.get_logger(__name__)

def format_rendered(result: Any, output_format: OutputFormat) -> str:
    """
    Serializes a render_theme result: a single page as HTML, anything else
    (page mappings, remote payloads) as JSON. Output always ends in a newline.
    """
    if output_format == OutputFormat.HTML and isinstance(result, str):
        return result if result.endswith("\n") else result + "\n"
    return json.dumps(result, indent=2, ensure_ascii=False) + "\n"

def write_to_stdout(text_content: str):
    try:
        sys.stdout.write(text_content)
        sys.stdout.flush()
    except UnicodeEncodeError as e:
        # some consoles cannot encode theme copy; write utf-8 bytes instead.
        log.warning("stdout_encode_failed_writing_utf8", error=str(e))
        sys.stdout.buffer.write(text_content.encode("utf-8", errors="replace"))
        sys.stdout.buffer.flush()

def write_to_file(output_file_path: Path, text_content: str):
    log.info("writing_rendered_output", path=str(output_file_path), chars=len(text_content))
    try:
        output_file_path.parent.mkdir(parents=True, exist_ok=True)
        output_file_path.write_text(text_content, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"failed to write to file '{output_file_path}': {e}") from e

def emit_rendered(result: Any, output_format: OutputFormat, output_file: Optional[Path] = None) -> str:
    # returns the serialized text so callers can report on it.
    text = format_rendered(result, output_format)
    if output_file:
        write_to_file(output_file, text)
    else:
        write_to_stdout(text)
    return text
