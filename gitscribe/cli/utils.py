"""CLI Utility Functions"""

import logging
import os
import subprocess
import sys
import tempfile


def setup_logging(verbose: bool = False) -> None:
    """Debug logging on stderr with --verbose or GITSCRIBE_DEBUG=true."""
    debug = verbose or os.environ.get('GITSCRIBE_DEBUG', '').lower() in ('1', 'true', 'yes')
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )


def copy_to_clipboard(text: str) -> tuple[bool, str]:
    """Copy text to clipboard. Returns (success, failure_reason)."""
    try:
        if sys.platform == 'win32':
            subprocess.run(['clip'], input=text.encode('utf-8'), check=True)
        elif sys.platform == 'darwin':
            subprocess.run(['pbcopy'], input=text.encode('utf-8'), check=True)
        else:
            try:
                subprocess.run(['xclip', '-selection', 'clipboard'], input=text.encode('utf-8'), check=True)
            except FileNotFoundError:
                subprocess.run(['xsel', '--clipboard', '--input'], input=text.encode('utf-8'), check=True)
        return True, ""
    except FileNotFoundError:
        if sys.platform == 'linux':
            return False, "Install xclip or xsel: sudo apt install xclip"
        return False, "No clipboard tool found"
    except (subprocess.CalledProcessError, OSError) as e:
        return False, f"Clipboard command failed: {e}"


def edit_text(initial: str, suffix: str = '.txt') -> str | None:
    """Open text in the user's editor. Returns edited text or None on failure."""
    editor = os.environ.get('VISUAL') or os.environ.get('EDITOR')
    if not editor:
        editor = 'notepad' if sys.platform == 'win32' else 'vi'

    tmp = tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False, encoding='utf-8')
    try:
        tmp.write(initial)
        tmp.close()
        subprocess.run([editor, tmp.name], check=True)
        with open(tmp.name, 'r', encoding='utf-8') as f:
            edited = f.read().strip()
        return edited if edited else None
    except (subprocess.CalledProcessError, OSError):
        return None
    finally:
        try:
            os.unlink(tmp.name)
        except OSError as e:
            print(f"Warning: Could not delete temp file {tmp.name}: {e}", file=sys.stderr)


def format_pr_content(title: str, description: str) -> str:
    """Title line, blank line, description; the layout `gh pr create` expects."""
    if not description:
        return title
    return f"{title}\n\n{description}"
