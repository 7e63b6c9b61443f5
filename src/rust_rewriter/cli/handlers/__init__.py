from .apply import handle_apply, _emit_files, _print_report
from .preview import handle_preview

__all__ = [
  "_emit_files",
  "_print_report",
  "handle_apply",
  "handle_preview",
]
