"""CLI Commands - profile and prompt management"""

import argparse

from gitscribe import OPERATIONS
from gitscribe.config import ConfigManager, NotFoundError, PersistenceError, Profile
from gitscribe.llm import LLMError, default_models, parse_provider
from gitscribe.generator import client_for_profile
from gitscribe.output import ARROW, STAR, bold, dim, info, mask_key, print_error, print_success, print_warning, Spinner
from gitscribe.prompts import DEFAULT_PROMPTS, missing_placeholders

from gitscribe.cli.utils import edit_text


def _selection_marker(name: str, active: str, fallback: str) -> str:
    if name == active:
        return info(f"{STAR} active")
    if name == fallback:
        return dim("fallback")
    return ""


def list_profiles(manager: ConfigManager, repo: str) -> int:
    profiles = manager.list_profiles(repo)
    active = manager.get_active(repo)
    fallback = manager.get_fallback(repo)

    print(f"\n{bold('AI Profiles')} {dim(repo)}\n")
    if not profiles:
        print(f"  {dim('No profiles configured.')}")
        print(f"  {dim('Run')} gitscribe profile add NAME --api-key KEY --model MODEL\n")
        return 0

    for name in sorted(profiles):
        profile = profiles[name]
        marker = _selection_marker(name, active, fallback)
        print(f"  {bold(name)} {marker}")
        print(f"    type:     {info(profile.type_name)}")
        print(f"    base_url: {info(profile.effective_base_url or '(not set)')}")
        print(f"    model:    {info(profile.model or '(not set)')}")
        print(f"    api_key:  {dim(mask_key(profile.api_key))}")
        if not profile.is_usable:
            print(f"    {dim('incomplete: needs api_key, base_url and model')}")
        print()

    # Stale pointers are tolerated, but worth pointing out
    if active and active not in profiles:
        print_warning(f"Active profile '{active}' no longer exists")
    if fallback and fallback not in profiles:
        print_warning(f"Fallback profile '{fallback}' no longer exists")
    return 0


def _apply_fields(profile: Profile, args: argparse.Namespace) -> Profile:
    if args.type:
        profile.type = parse_provider(args.type)
    if args.base_url is not None:
        profile.base_url = args.base_url.rstrip('/')
    if args.api_key is not None:
        profile.api_key = args.api_key
    if args.model is not None:
        profile.model = args.model
    return profile


def add_profile(manager: ConfigManager, repo: str, args: argparse.Namespace) -> int:
    profile = _apply_fields(Profile(name=args.name), args)
    manager.add_profile(repo, profile)
    print_success(f"Saved profile {bold(profile.name)}")

    if not profile.is_usable:
        print_warning("Profile is incomplete and will be skipped until api_key, base_url and model are set")
    if args.activate:
        manager.set_active(repo, profile.name)
        print_success(f"{bold(profile.name)} is now the active profile")
    return 0


def update_profile(manager: ConfigManager, repo: str, args: argparse.Namespace) -> int:
    existing = manager.list_profiles(repo).get(args.name)
    if existing is None:
        raise NotFoundError(args.name)
    manager.update_profile(repo, _apply_fields(existing, args))
    print_success(f"Updated profile {bold(args.name)}")
    return 0


def delete_profile(manager: ConfigManager, repo: str, args: argparse.Namespace) -> int:
    was_selected = args.name in (manager.get_active(repo), manager.get_fallback(repo))
    manager.delete_profile(repo, args.name)
    print_success(f"Deleted profile {bold(args.name)}")
    if was_selected:
        print(dim("  Selection pointing at it was cleared."))
    return 0


def select_profile(manager: ConfigManager, repo: str, args: argparse.Namespace, role: str) -> int:
    name = "" if args.clear else args.name
    if role == 'active':
        manager.set_active(repo, name)
    else:
        manager.set_fallback(repo, name)

    if name:
        print_success(f"{bold(name)} is now the {role} profile")
    else:
        print_success(f"Cleared the {role} profile")
    return 0


def test_profile(manager: ConfigManager, repo: str, args: argparse.Namespace) -> int:
    name = args.name or manager.get_active(repo)
    if not name:
        print_error("No profile given and no active profile set")
        return 1
    profile = manager.list_profiles(repo).get(name)
    if profile is None:
        raise NotFoundError(name)

    client = client_for_profile(profile)
    with Spinner(f"Testing {name}..."):
        client.test_connection()
    print_success(f"{bold(name)} responded ({client.name})")
    return 0


def show_models(args: argparse.Namespace) -> int:
    models = default_models(args.type)
    print(f"\n{bold('Suggested models')} {dim(args.type)}\n")
    if not models:
        print(f"  {dim('Any model name your endpoint serves.')}\n")
        return 0
    for model in models:
        print(f"  {model}")
    print(f"\n  {dim('Other model and deployment names are accepted too.')}\n")
    return 0


def show_prompts(manager: ConfigManager, args: argparse.Namespace) -> int:
    prompts = manager.get_prompts()
    kinds = [args.kind] if args.kind else list(DEFAULT_PROMPTS)
    for kind in kinds:
        source = dim("built-in") if prompts.is_default(kind) else info("custom")
        print(f"\n{bold(kind)} {ARROW} {OPERATIONS[kind]} ({source})\n")
        print(prompts.get(kind))
    print()
    return 0


def set_prompt(manager: ConfigManager, args: argparse.Namespace) -> int:
    if args.text is not None:
        text = args.text
    elif args.file:
        try:
            with open(args.file, 'r', encoding='utf-8') as f:
                text = f.read()
        except OSError as e:
            print_error(f"Could not read {args.file}: {e}")
            return 1
    else:
        text = edit_text(manager.get_prompts().get(args.kind), suffix='.md')
        if text is None:
            print_error("Prompt unchanged (editor failed or returned nothing)")
            return 1

    missing = missing_placeholders(args.kind, text)
    if missing:
        print_warning(f"Prompt does not use {', '.join(missing)}; that context will not reach the model")
    manager.set_prompt(args.kind, text)
    print_success(f"Saved custom {bold(args.kind)} prompt")
    return 0


def reset_prompts(manager: ConfigManager, args: argparse.Namespace) -> int:
    if args.kind:
        manager.set_prompt(args.kind, "")
        print_success(f"Restored built-in {bold(args.kind)} prompt")
    else:
        manager.reset_prompts()
        print_success("Restored all built-in prompts")
    return 0


def run_profile_command(manager: ConfigManager, repo: str, args: argparse.Namespace) -> int:
    action = args.profile_command
    try:
        if action == 'list':
            return list_profiles(manager, repo)
        if action == 'add':
            return add_profile(manager, repo, args)
        if action == 'update':
            return update_profile(manager, repo, args)
        if action == 'delete':
            return delete_profile(manager, repo, args)
        if action in ('use', 'fallback'):
            return select_profile(manager, repo, args, 'active' if action == 'use' else 'fallback')
        if action == 'test':
            return test_profile(manager, repo, args)
        if action == 'models':
            return show_models(args)
    except NotFoundError as e:
        print_error(f"{e}. Run: gitscribe profile list")
        return 1
    except (PersistenceError, LLMError) as e:
        print_error(str(e))
        return 1
    print_error(f"Unknown profile action: {action}")
    return 1


def run_prompts_command(manager: ConfigManager, args: argparse.Namespace) -> int:
    action = args.prompts_command
    try:
        if action == 'show':
            return show_prompts(manager, args)
        if action == 'set':
            return set_prompt(manager, args)
        if action == 'reset':
            return reset_prompts(manager, args)
    except PersistenceError as e:
        print_error(str(e))
        return 1
    print_error(f"Unknown prompts action: {action}")
    return 1
