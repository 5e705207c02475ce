"""Shared constants used across the application."""

# Release Notes Constants
# -----------------------

SEMVER_PATTERN = r"^v?(\d+)\.(\d+)\.(\d+)$"
"""Regex pattern exposed to templates as `semver` (e.g., v1.2.3 or 1.2.3)."""

DEFAULT_SQUASH_COMMIT_PATTERN = r"^squash:(.?)+$"
"""Regex pattern to match squash-merge commit messages."""

HEAD_REF = "HEAD"
"""Alias of the unreleased tip of the repository."""

DEFAULT_TO_EXPRESSION = "{{ filter(semver, tags()) | last }}"
"""Default expression for the newest ref of the changelog (latest semver tag)."""

DEFAULT_FROM_EXPRESSION = "{{ previousTag(to_ref, headed(filter(semver, tags()))) }}"
"""Default expression for the oldest ref of the changelog (tag before `to_ref`)."""

DEFAULT_MAX_CONCURRENT_PR_REQUESTS = 10
"""Default cap on concurrent pull request lookups against the git engine."""

DEFAULT_TIMEOUT_SECONDS = 300.0
"""Default deadline for assembling and delivering a changelog."""

SORT_FIELD_PATTERN = r"^[+-]?(number|author|title|closed)$"
"""Regex pattern that valid `sort_field` settings must match."""

DEFAULT_RELEASE_NOTES_TEMPLATE = """\
{% if not categories %}- No changes
{% endif %}{% for category in categories %}## {{ category.title }}
{% for pr in category.prs %}- {{ pr.title }} (#{{ pr.number }}) by @{{ pr.author.username }}
{% endfor %}{% for commit in category.commits %}- {{ commit.message.partition("\\n")[0] }} ({{ commit.sha[:7] }})
{% endfor %}
{% endfor %}"""
"""Default Jinja2 template used when the release notes config does not set one."""
