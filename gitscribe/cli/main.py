"""CLI Main Entry Point"""

import sys

from gitscribe.config import ConfigManager
from gitscribe.generator import Generator, GenerationResult, Operation
from gitscribe.git import GitAnalyzer, GitError
from gitscribe.llm import LLMError
from gitscribe.output import CHECK, Spinner, bold, colorize_commit_type, dim, print_error, success, warning

from gitscribe.cli.args import parse_args
from gitscribe.cli.commands import run_profile_command, run_prompts_command
from gitscribe.cli.utils import copy_to_clipboard, format_pr_content, setup_logging

LABELS = {
    Operation.COMMIT_MESSAGE: "commit message",
    Operation.BRANCH_NAME: "branch name",
    Operation.PR_CONTENT: "PR description",
}


def _open_repo(path):
    """Return a GitAnalyzer or None after reporting why not."""
    try:
        return GitAnalyzer(path)
    except GitError as e:
        print_error(str(e))
        return None


def _collect_inputs(analyzer: GitAnalyzer, operation: Operation, args) -> dict | None:
    """Gather the git text an operation needs; None when there is nothing to describe."""
    if operation is Operation.COMMIT_MESSAGE:
        context = analyzer.commit_context()
        if context.is_empty:
            print_error("No changes to describe. Edit or stage some files first.")
            return None
        return {"status": context.status, "diff": context.diff, "branch": context.branch, "log": context.log}

    base = getattr(args, 'base', None)
    diff = analyzer.diff_from(base) if base else analyzer.working_diff()
    if not diff.strip():
        where = f"against {base}" if base else "in the working tree"
        print_error(f"No changes {where}.")
        return None
    return {"diff": diff}


def _render(operation: Operation, result: GenerationResult) -> str:
    if operation is Operation.PR_CONTENT:
        return format_pr_content(result.value.title, result.value.description)
    return result.value


def _display(operation: Operation, text: str) -> None:
    lines = text.split('\n')
    width = max((len(line) for line in lines), default=40)
    first = colorize_commit_type(lines[0]) if operation is Operation.COMMIT_MESSAGE else lines[0]
    print(f"\n{dim('─' * width)}")
    print(bold(first))
    for line in lines[1:]:
        print(line)
    print(dim('─' * width))


def _copy_and_report(text: str, no_copy: bool) -> None:
    if no_copy:
        return
    copied, reason = copy_to_clipboard(text)
    if copied:
        print(f"{success(CHECK)} Copied to clipboard!")
    else:
        print(f"{warning('!')} Could not copy to clipboard{': ' + reason if reason else ''}")
        print(dim("  Select the text above to copy manually."))


def run_generation(manager: ConfigManager, operation: Operation, args) -> int:
    """Generate for the repository and print the result.

    Returns:
        int: Exit code
    """
    is_pipe = not sys.stdout.isatty()

    analyzer = _open_repo(args.repo)
    if analyzer is None:
        return 1
    try:
        inputs = _collect_inputs(analyzer, operation, args)
    except GitError as e:
        print_error(str(e))
        return 1
    if inputs is None:
        return 1

    generator = Generator(manager)
    try:
        with Spinner(f"Generating {LABELS[operation]}..."):
            result = generator.generate(analyzer.root, operation, inputs)
    except LLMError as e:
        print_error(str(e))
        return 1

    text = _render(operation, result)

    # Pipe mode: output raw text and exit
    if is_pipe:
        print(text)
        return 0

    _display(operation, text)
    source = f"{result.profile_name} ({result.served_by})"
    if result.from_fallback:
        print(warning(f"Served by fallback {source}"))
    else:
        print(dim(f"Served by {source}"))
    _copy_and_report(text, args.no_copy)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    # One config manager per process, handed to everything that needs it
    manager = ConfigManager(args.config)

    if args.command == 'commit':
        return run_generation(manager, Operation.COMMIT_MESSAGE, args)
    if args.command == 'branch':
        return run_generation(manager, Operation.BRANCH_NAME, args)
    if args.command == 'pr':
        return run_generation(manager, Operation.PR_CONTENT, args)

    if args.command == 'prompts':
        return run_prompts_command(manager, args)
    if args.profile_command == 'models':
        return run_profile_command(manager, "", args)

    analyzer = _open_repo(args.repo)
    if analyzer is None:
        return 1
    if args.profile_command == 'list':
        print(dim(f"Config: {manager.path}"))
    return run_profile_command(manager, analyzer.root, args)


if __name__ == "__main__":
    sys.exit(main())
