"""
gitscribe

AI-generated commit messages, branch names and PR descriptions from git
changes, served by per-repository OpenAI-compatible provider profiles.
"""

__version__ = "1.0.0"

# Generation operations - single source of truth
# Used by: generator.py (dispatch), config (prompt overrides), cli (subcommands)
OPERATIONS = {
    'commit_message': 'One-line conventional commit subject',
    'branch_name': 'Short kebab-case branch name',
    'pr_content': 'Pull request title and release-notes description',
}

OPERATION_NAMES = list(OPERATIONS.keys())
