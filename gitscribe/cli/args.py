"""CLI Argument Parsing"""

import argparse
import argcomplete

from gitscribe import OPERATION_NAMES, __version__
from gitscribe.llm.providers import PROVIDER_NAMES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='gitscribe',
        description='Generate commit messages, branch names and PR descriptions with AI',
        epilog='Example: gitscribe commit (copies message to clipboard)'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', type=str, metavar='PATH', help='Config file (default: ~/.config/gitscribe/config.json)')
    parser.add_argument('-C', '--repo', type=str, default='.', metavar='PATH', help='Repository to work in (default: current directory)')
    parser.add_argument('--verbose', action='store_true', help='Show debug logging on stderr')

    sub = parser.add_subparsers(dest='command', metavar='COMMAND')
    sub.required = True

    # Generation
    commit = sub.add_parser('commit', help='Generate a commit message from staged and unstaged changes')
    commit.add_argument('--no-copy', action='store_true', help='Print message only, do not copy to clipboard')

    branch = sub.add_parser('branch', help='Generate a branch name')
    branch.add_argument('--base', type=str, metavar='BRANCH', help='Describe the diff against BRANCH instead of the working tree')
    branch.add_argument('--no-copy', action='store_true', help='Print name only, do not copy to clipboard')

    pr = sub.add_parser('pr', help='Generate a pull request title and description')
    pr.add_argument('--base', type=str, default='main', metavar='BRANCH', help='Base branch to diff against (default: main)')
    pr.add_argument('--no-copy', action='store_true', help='Print content only, do not copy to clipboard')

    # Profiles
    profile = sub.add_parser('profile', help='Manage AI provider profiles for this repository')
    profile_sub = profile.add_subparsers(dest='profile_command', metavar='ACTION')
    profile_sub.required = True

    profile_sub.add_parser('list', help='List profiles and the active/fallback selection')

    for action, help_text in (('add', 'Add or replace a profile'), ('update', 'Change fields of an existing profile')):
        p = profile_sub.add_parser(action, help=help_text)
        p.add_argument('name', help='Profile name')
        p.add_argument('-t', '--type', choices=PROVIDER_NAMES, help='Provider type (default: openai)')
        p.add_argument('--base-url', type=str, metavar='URL', help='API base URL (required for azure/custom)')
        p.add_argument('--api-key', type=str, metavar='KEY', help='Bearer API key')
        p.add_argument('-m', '--model', type=str, metavar='MODEL', help='Model or deployment name')
        if action == 'add':
            p.add_argument('--activate', action='store_true', help='Also make this the active profile')

    delete = profile_sub.add_parser('delete', help='Delete a profile')
    delete.add_argument('name', help='Profile name')

    for action, help_text in (('use', 'Set the active profile'), ('fallback', 'Set the fallback profile')):
        p = profile_sub.add_parser(action, help=help_text)
        group = p.add_mutually_exclusive_group(required=True)
        group.add_argument('name', nargs='?', help='Profile name')
        group.add_argument('--clear', action='store_true', help='Unset the selection')

    test = profile_sub.add_parser('test', help='Send a tiny request to check a profile works')
    test.add_argument('name', nargs='?', help='Profile name (default: active profile)')

    models = profile_sub.add_parser('models', help='Show suggested models for a provider type')
    models.add_argument('type', nargs='?', choices=PROVIDER_NAMES, default='openai')

    # Prompts
    prompts = sub.add_parser('prompts', help='Show or override the AI prompts (global)')
    prompts_sub = prompts.add_subparsers(dest='prompts_command', metavar='ACTION')
    prompts_sub.required = True

    show = prompts_sub.add_parser('show', help='Print the effective prompts')
    show.add_argument('kind', nargs='?', choices=OPERATION_NAMES)

    set_prompt = prompts_sub.add_parser('set', help='Override one prompt (opens $EDITOR without --text/--file)')
    set_prompt.add_argument('kind', choices=OPERATION_NAMES)
    source = set_prompt.add_mutually_exclusive_group()
    source.add_argument('--text', type=str, help='Prompt text')
    source.add_argument('--file', type=str, metavar='PATH', help='Read prompt text from a file')

    reset = prompts_sub.add_parser('reset', help='Restore built-in prompts')
    reset.add_argument('kind', nargs='?', choices=OPERATION_NAMES, help='Only reset this prompt')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
