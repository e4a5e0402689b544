"""Render the generation prompt around the assembled context"""

from src.models.generation import GenerationOptions

CUSTOM_PROMPT_TEMPLATE = (
    "Generate documentation for the following GitHub repository content "
    "based on these instructions:\n\n"
    "{instructions}\n\n"
    "Repository files:\n"
    "{context}\n\n"
)

DEFAULT_PROMPT_TEMPLATE = """\
Generate {documentation_type} for the following GitHub repository content.
Focus on the most important details and make the documentation concise but informative.
Structure the documentation with clear headings and organize the information
for easy reading.
Include a directory structure overview to help understand the project organization.
Where it helps understanding, include short code examples showing how the project is used.

{context}

"""


def describe_documentation(options: GenerationOptions | None) -> str:
    """Documentation type phrase, mentioning only the enabled options"""
    base = "brief but comprehensive documentation"
    if options is None:
        return base

    parts = []
    if options.include_readme:
        parts.append("README content")
    if options.include_source_code:
        parts.append("key code explanations")
    if options.include_issues:
        parts.append("issue summaries")
    if options.include_pull_requests:
        parts.append("pull request details")

    if not parts:
        return base
    return f"{base} with {', '.join(parts)}"


def build_prompt(context: str, options: GenerationOptions | None) -> str:
    """
    Render the prompt sent to the model

    Args:
        context: Assembled repository context
        options: Caller options (None = no options supplied)

    Returns:
        Prompt text; custom instructions replace the default preamble
    """
    if options is not None and options.custom_prompt:
        return CUSTOM_PROMPT_TEMPLATE.format(instructions=options.custom_prompt, context=context)

    return DEFAULT_PROMPT_TEMPLATE.format(
        documentation_type=describe_documentation(options), context=context
    )
