"""External toolchain integrations for texwatch."""

from .latex import (
    LatexBuilder,
    ToolResult,
    clean,
    compile_full,
    compile_incremental,
    latex_env,
    needs_bibliography,
    publish_pdf,
    references_resolved,
    run_tool,
)

__all__ = [
    "LatexBuilder",
    "ToolResult",
    "clean",
    "compile_full",
    "compile_incremental",
    "latex_env",
    "needs_bibliography",
    "publish_pdf",
    "references_resolved",
    "run_tool",
]
