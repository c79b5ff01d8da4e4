"""Text analysis: chat completions client, response parsing and heuristic fallbacks."""

from .heuristics import heuristic_audit_summary, heuristic_llms_analysis
from .llm_client import ChatCompletionsAnalyzer
from .parsing import AnalysisPayload, Parsed, ParseResult, Unparsable, parse_analysis
from .prompts import AUDIT_SYSTEM_PROMPT, LLMS_SYSTEM_PROMPT, audit_prompt, format_audit_facts, llms_prompt
from .runner import AnalysisAttempt, run_analysis

__all__ = [
    "AnalysisAttempt",
    "AUDIT_SYSTEM_PROMPT",
    "LLMS_SYSTEM_PROMPT",
    "AnalysisPayload",
    "ChatCompletionsAnalyzer",
    "ParseResult",
    "Parsed",
    "Unparsable",
    "audit_prompt",
    "format_audit_facts",
    "heuristic_audit_summary",
    "heuristic_llms_analysis",
    "llms_prompt",
    "parse_analysis",
    "run_analysis",
]
