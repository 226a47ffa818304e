from typing import NamedTuple


class HelpLink(NamedTuple):
    action: str
    title: str
    url: str


DOCUMENTATION_URL = "https://docs.projectdiscovery.io/templates/introduction"

HELP_LINKS: list[HelpLink] = [
    HelpLink("documentation", "Template documentation", DOCUMENTATION_URL),
    HelpLink(
        "examples",
        "Template examples",
        "https://github.com/projectdiscovery/nuclei-templates",
    ),
    HelpLink(
        "issues",
        "Report an issue with the scanner",
        "https://github.com/projectdiscovery/nuclei/issues",
    ),
]


def get_help_url(action: str) -> str | None:
    """Get the URL for a help menu action, or `None` if it isn't a link."""
    for link in HELP_LINKS:
        if link.action == action:
            return link.url
    return None
