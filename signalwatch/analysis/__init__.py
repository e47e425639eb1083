"""Analysis service used for new opportunities and follow-ups."""

from .claude_analyzer import ClaudeAnalyzer, build_prompt, parse_response

__all__ = ["ClaudeAnalyzer", "build_prompt", "parse_response"]
