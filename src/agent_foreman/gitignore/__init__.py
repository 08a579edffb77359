"""Gitignore generation from bundled and GitHub templates."""

from .bundled import BUNDLED_TEMPLATES, get_bundled_template, is_bundled_template, verify_bundled_templates
from .generator import GitignoreResult, detect_templates, ensure_gitignore, generate_gitignore_content
from .github_api import FetchResult, GitignoreTemplateClient, GitignoreTemplateError

__all__ = [
    "BUNDLED_TEMPLATES",
    "FetchResult",
    "GitignoreResult",
    "GitignoreTemplateClient",
    "GitignoreTemplateError",
    "detect_templates",
    "ensure_gitignore",
    "generate_gitignore_content",
    "get_bundled_template",
    "is_bundled_template",
    "verify_bundled_templates",
]
