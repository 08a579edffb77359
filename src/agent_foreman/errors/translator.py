"""Translate technical errors to user-friendly messages."""

import re
from dataclasses import dataclass
from typing import List, Optional

from rich.markup import escape


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    documentation: Optional[str] = None
    show_technical: bool = False


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    ERROR_PATTERNS = {
        # Git state
        r"GitError|not a git repository|unable to read working tree": {
            "title": "Cannot read repository state",
            "explanation": "The layered check needs git to list changed files, and git could not read this working tree.",
            "actions": [
                "Run the command from inside the project repository",
                "Check that git is installed: git --version",
                "Check file permissions on the .git directory",
            ],
        },

        # Feature list
        r"No feature list|agent-foreman init": {
            "title": "Project not initialized",
            "explanation": "This directory has no ai/feature_list.json yet.",
            "actions": [
                "Initialize the harness: agent-foreman init \"<project goal>\"",
            ],
        },

        r"FeatureListError|feature_list\.json": {
            "title": "Feature list is unreadable",
            "explanation": "ai/feature_list.json exists but is not valid JSON or does not match the expected shape.",
            "actions": [
                "Inspect the file: cat ai/feature_list.json",
                "Restore it from git: git checkout -- ai/feature_list.json",
                "Or regenerate it: agent-foreman init \"<goal>\" --mode new",
            ],
        },

        r"Feature not found|Unknown feature": {
            "title": "Feature not found",
            "explanation": "No feature with that id exists in ai/feature_list.json.",
            "actions": [
                "List features: agent-foreman status",
                "Add it: agent-foreman add <id> -d \"description\" -m <module>",
            ],
        },

        # LLM backends
        r"claude.*not found|No such file or directory: 'claude'": {
            "title": "Claude CLI not installed",
            "explanation": "AI verification uses the Claude CLI, which was not found on PATH.",
            "actions": [
                "Install the Claude CLI and make sure `claude` is on PATH",
                "Or switch backends: set llm.mode: litellm in ai/foreman.yaml",
                "Or run without --ai",
            ],
        },

        r"litellm is not installed": {
            "title": "LiteLLM backend unavailable",
            "explanation": "llm.mode is set to litellm but the optional dependency is missing.",
            "actions": [
                "Install it: pip install 'agent-foreman[litellm]'",
                "Or set llm.mode: claude_cli in ai/foreman.yaml",
            ],
        },

        # GitHub
        r"rate.*limit|403.*github|API rate": {
            "title": "GitHub API rate limit exceeded",
            "explanation": "Fetching gitignore templates from GitHub hit the unauthenticated rate limit.",
            "actions": [
                "Wait for the limit to reset (usually within an hour)",
                "Set FOREMAN_GITIGNORE__GITHUB_TOKEN to authenticate",
                "Bundled templates are still available offline",
            ],
        },

        # Network errors
        r"connection.*refused|connection.*timeout|network.*unreachable": {
            "title": "Cannot connect to service",
            "explanation": "Unable to reach a remote service. This could be a network issue or service outage.",
            "actions": [
                "Check your internet connection",
                "Try again in a few minutes",
            ],
        },

        # Config errors
        r"foreman\.yaml|yaml.*(scanner|parser)|ValidationError": {
            "title": "Invalid configuration",
            "explanation": "ai/foreman.yaml could not be parsed or contains invalid values.",
            "actions": [
                "Check the YAML syntax in ai/foreman.yaml",
                "Remove unknown or mistyped keys",
            ],
        },

        r"Permission denied": {
            "title": "Permission denied",
            "explanation": "agent-foreman could not read or write a file in the project.",
            "actions": [
                "Check ownership of the ai/ directory",
                "Re-run from an account with write access",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        """Convert exception to user-friendly format."""
        error_str = str(error)
        error_type = type(error).__name__
        full_error = f"{error_type}: {error_str}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE):
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=translation["explanation"],
                    actions=translation["actions"],
                    documentation=translation.get("documentation"),
                    show_technical=False,
                )

        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=str(error),
            actions=[
                "Re-run with --verbose for details",
                "Check ai/logs/foreman.log",
            ],
            show_technical=True,
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        """Format error for CLI display."""
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{escape(friendly_error.explanation)}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {escape(action)}\n"

        if friendly_error.documentation:
            output += f"\n[dim]Learn more: {friendly_error.documentation}[/]"

        if friendly_error.show_technical:
            output += f"\n\n[dim]Technical details:[/]\n[dim]{escape(str(friendly_error.original_error))}[/]"

        return output
