#!/usr/bin/env python3
"""
AutoApply CLI - Command-line interface for application autofill

Usage:
    autoapply [OPTIONS] COMMAND [ARGS]

Commands:
    providers  Inspect and test the configured AI providers
    prompts    Manage the editable prompt configuration
    resolve    Resolve form fields against a profile
    answer     Answer a screening question
    match      Score a resume against a job description
    essay      Write a "why this company" essay
    tailor     Tailor resume sections to a job
    parse      Parse a plain-text resume
    cover-letter  Write a cover letter
"""

import asyncio
import logging
import sys
from typing import Tuple

import click
from dotenv import load_dotenv

from .utils import (
    console,
    cli_state,
    handle_error,
    print_error,
    print_header,
    print_info,
    print_json,
    print_match_results,
    print_panel,
    print_success,
    print_table,
    print_warning,
    read_text_file,
)

# Load environment variables
load_dotenv()


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.version_option(version="1.0.0", prog_name="AutoApply CLI")
@click.pass_context
def cli(ctx, verbose, as_json):
    """AutoApply CLI - Tiered value resolution for job application forms"""
    cli_state.set_verbose(verbose)
    cli_state.set_json(as_json)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["state"] = cli_state


# =============================================================================
# Provider Commands
# =============================================================================

@cli.group(name="providers")
def providers_group():
    """Inspect and test the configured AI providers"""


@providers_group.command(name="list")
def providers_list():
    """Show providers, their chains and tier offsets"""
    from autoapply.ai import load_waterfall_settings

    settings = load_waterfall_settings()
    if cli_state.as_json:
        data = settings.to_dict()
        for provider in data["providers"]:
            provider["api_key"] = None
        print_json(data)
        return

    rows = []
    for provider in settings.providers:
        if provider.name == settings.primary:
            role = "primary"
        elif provider.name in settings.secondaries:
            role = f"secondary #{settings.secondaries.index(provider.name) + 1}"
        else:
            role = "-"
        rows.append([
            provider.name,
            provider.kind,
            role,
            provider.tier_offset,
            len(provider.models),
            "Yes" if provider.is_configured else f"No ({provider.api_key_env})",
        ])

    print_table(
        "AI Providers",
        columns=["Name", "Kind", "Chain", "Tier Offset", "Models", "Configured"],
        rows=rows,
    )
    console.print(
        f"[dim]Timeouts: field {settings.field_timeout}s, document {settings.document_timeout}s. "
        f"Backoff: {settings.backoff_base}s step, {settings.backoff_max}s cap.[/dim]"
    )


@providers_group.command(name="check")
@click.argument("names", nargs=-1)
def providers_check(names: Tuple[str, ...]):
    """Test connectivity for configured providers"""
    from autoapply.ai import ProviderNotConfiguredError, create_provider, load_waterfall_settings

    settings = load_waterfall_settings()
    selected = [p for p in settings.providers if not names or p.name in names]
    if not selected:
        print_error(f"No provider named {', '.join(names)}", exit_code=1)

    rows = []
    failures = 0
    for provider_settings in selected:
        try:
            provider = create_provider(provider_settings)
        except ProviderNotConfiguredError as e:
            rows.append([provider_settings.name, "[yellow]Skipped[/yellow]", "-", str(e)])
            continue

        with console.status(f"[cyan]Testing {provider_settings.name}...", spinner="dots"):
            result = provider.test_connection()
        if result.success:
            rows.append([result.provider, "[green]OK[/green]", f"{result.latency_ms:.0f} ms", ""])
        else:
            failures += 1
            rows.append([result.provider, "[red]Failed[/red]", "-", result.error or ""])

    print_table("Provider Connectivity", columns=["Provider", "Status", "Latency", "Detail"], rows=rows)
    if failures:
        sys.exit(1)


@providers_group.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite an existing providers.yaml")
def providers_init(force):
    """Write providers.yaml from the built-in presets"""
    from autoapply.ai import WaterfallSettings, save_waterfall_settings
    from autoapply.ai.settings import PROVIDER_PRESETS, SETTINGS_FILE, provider_from_preset

    if SETTINGS_FILE.exists() and not force:
        print_warning(f"{SETTINGS_FILE} already exists (use --force to overwrite)")
        return

    settings = WaterfallSettings(providers=[provider_from_preset(name) for name in PROVIDER_PRESETS])
    if save_waterfall_settings(settings):
        print_success(f"Wrote {SETTINGS_FILE}")
    else:
        print_error("Failed to write provider settings", exit_code=1)


# =============================================================================
# Prompt Config Commands
# =============================================================================

@cli.group(name="prompts")
def prompts_group():
    """Manage the editable prompt configuration"""


@prompts_group.command(name="show")
def prompts_show():
    """Print the active prompt configuration"""
    from autoapply.job_matcher import PromptConfigManager

    manager = PromptConfigManager()
    print_json(manager.load().model_dump(), title=str(manager.config_path))


@prompts_group.command(name="reset")
def prompts_reset():
    """Write the default prompt configuration"""
    from autoapply.job_matcher import PromptConfigManager

    manager = PromptConfigManager()
    manager.reset_to_defaults()
    print_success(f"Reset {manager.config_path}")


# =============================================================================
# Form Commands
# =============================================================================

@cli.command(name="resolve")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("fields")
def resolve_command(profile_path, fields):
    """
    Resolve form fields against a profile.

    FIELDS is a JSON/YAML file or an inline JSON field (or list of fields).
    """
    from autoapply.resolver import get_field_resolver, load_form_fields, load_profile

    profile = load_profile(profile_path)
    form_fields = load_form_fields(fields)
    resolver = get_field_resolver()

    async def _run():
        results = []
        for field in form_fields:
            result = await resolver.match_field_value(field, profile)
            results.append({"label": field.label, **result.to_dict()})
        return results

    results = asyncio.run(_run())
    if cli_state.as_json:
        print_json(results)
    else:
        print_match_results(results)


@cli.command(name="answer")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("question")
@click.option("--option", "-o", "options", multiple=True, help="Allowed answer (repeatable)")
@click.option("--char-limit", type=int, default=None, help="Character limit for free-text answers")
def answer_command(profile_path, question, options, char_limit):
    """Answer a screening question, choosing from --option values if given"""
    from autoapply.ai import get_waterfall
    from autoapply.core.config import DEFAULT_ANSWER_CHAR_LIMIT
    from autoapply.resolver import answer_free_text, answer_option_question, load_profile

    profile = load_profile(profile_path)
    waterfall = get_waterfall()

    if options:
        answer = asyncio.run(answer_option_question(waterfall, question, list(options), profile))
    else:
        answer = asyncio.run(
            answer_free_text(waterfall, question, profile, char_limit or DEFAULT_ANSWER_CHAR_LIMIT)
        )

    if cli_state.as_json:
        print_json({"question": question, "answer": answer})
    elif answer:
        print_panel(answer, title=question)
    else:
        print_warning("No provider produced an answer")


# =============================================================================
# Document Commands
# =============================================================================

@cli.command(name="match")
@click.argument("resume_file")
@click.argument("job_file")
@click.option("--graduation", help="Expected graduation, e.g. 'May 2026'")
def match_command(resume_file, job_file, graduation):
    """Score RESUME_FILE against JOB_FILE (plain text, '-' for stdin)"""
    from autoapply.job_matcher import generate_match_analysis

    resume_text = read_text_file(resume_file)
    job_description = read_text_file(job_file)

    with console.status("[cyan]Analyzing match...", spinner="dots"):
        analysis = asyncio.run(
            generate_match_analysis(job_description, resume_text, graduation=graduation)
        )

    if cli_state.as_json:
        print_json(analysis.model_dump())
        return

    color = "green" if analysis.score >= 70 else "yellow" if analysis.score >= 40 else "red"
    print_header(f"Match Score: {analysis.score}%", style=f"bold {color}")
    if analysis.top_skills:
        print_info(f"Top skills: {', '.join(analysis.top_skills)}")
    if analysis.pros:
        print_panel("\n".join(f"- {p}" for p in analysis.pros), title="Pros", style="green")
    if analysis.cons:
        print_panel("\n".join(f"- {c}" for c in analysis.cons), title="Cons", style="yellow")


@cli.command(name="essay")
@click.argument("resume_file")
@click.argument("job_file")
@click.option("--char-limit", type=int, default=None, help="Maximum essay length in characters")
@click.option("--company", help="Company name")
@click.option("--title", "job_title", help="Job title")
def essay_command(resume_file, job_file, char_limit, company, job_title):
    """Write a "why do you want to join us" essay"""
    from autoapply.core.config import DEFAULT_ESSAY_CHAR_LIMIT
    from autoapply.job_matcher import generate_essay

    resume_text = read_text_file(resume_file)
    job_description = read_text_file(job_file)

    with console.status("[cyan]Writing essay...", spinner="dots"):
        essay = asyncio.run(generate_essay(
            job_description,
            resume_text,
            char_limit or DEFAULT_ESSAY_CHAR_LIMIT,
            company=company,
            job_title=job_title,
        ))

    if cli_state.as_json:
        print_json({"essay": essay, "length": len(essay)})
    else:
        print_panel(essay, title=f"Essay ({len(essay)} chars)")


@cli.command(name="tailor")
@click.argument("profile_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("job_file")
def tailor_command(profile_path, job_file):
    """Tailor the profile's resume sections to JOB_FILE"""
    from autoapply.job_matcher import tailor_resume
    from autoapply.resolver import load_profile

    profile = load_profile(profile_path)
    job_description = read_text_file(job_file)

    with console.status("[cyan]Tailoring resume...", spinner="dots"):
        tailored = asyncio.run(tailor_resume(profile.resume, job_description))

    print_json(tailored.model_dump(), title=None if cli_state.as_json else "Tailored Resume")


@cli.command(name="parse")
@click.argument("resume_file")
def parse_command(resume_file):
    """Parse a plain-text resume into structured sections"""
    from autoapply.job_matcher import parse_resume

    resume_text = read_text_file(resume_file)
    with console.status("[cyan]Parsing resume...", spinner="dots"):
        parsed = asyncio.run(parse_resume(resume_text))

    print_json(parsed.model_dump(), title=None if cli_state.as_json else "Parsed Resume")


@cli.command(name="cover-letter")
@click.argument("resume_file")
@click.argument("job_file")
@click.option("--name", "candidate_name", required=True, help="Candidate name")
@click.option("--title", "job_title", required=True, help="Job title")
@click.option("--company", required=True, help="Company name")
def cover_letter_command(resume_file, job_file, candidate_name, job_title, company):
    """Write a cover letter grounded in the resume"""
    from autoapply.job_matcher import generate_cover_letter

    resume_text = read_text_file(resume_file)
    job_description = read_text_file(job_file)

    with console.status("[cyan]Writing cover letter...", spinner="dots"):
        letter = asyncio.run(generate_cover_letter(
            candidate_name, job_title, company, job_description, resume_text
        ))

    if cli_state.as_json:
        print_json({"cover_letter": letter})
    else:
        print_panel(letter, title=f"{job_title} at {company}")


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    """Main entry point"""
    from autoapply.ai import GenerationExhaustedError
    from autoapply.resolver import ProfileLoadError

    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        print_error("\n\nInterrupted by user")
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except (GenerationExhaustedError, ProfileLoadError, ValueError) as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print_error("\n\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        handle_error(e, verbose=cli_state.verbose)
        sys.exit(1)


if __name__ == "__main__":
    main()
