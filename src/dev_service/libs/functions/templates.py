import re
from collections.abc import Iterable, Mapping

from dev_service.libs.errors import ConfigurationError

TEMPLATE_KEYS = frozenset({"image", "container_name", "projectname", "volumesPrefix"})

_TAG_PATTERN = re.compile(r":[a-z0-9_][a-z0-9_.-]{0,127}$", re.IGNORECASE)
_DIGEST_PATTERN = re.compile(r"@[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[0-9a-f]{32,}$", re.IGNORECASE)


def get_name(image: str) -> str:
    """Service name of an image reference: ``registry:5000/lib/mongo:4`` → ``mongo``."""
    without_tag = _TAG_PATTERN.sub("", _DIGEST_PATTERN.sub("", image))
    return without_tag.split("/")[-1]


def escape(project_name: str) -> str:
    """Turn a project name into something usable as compose project and volume prefix."""
    escaped = re.sub(r"[^a-z0-9_-]+", "-", project_name.lower()).strip("-_")
    if not escaped:
        raise ConfigurationError(
            f"Project name {project_name!r} has no usable characters (a-z, 0-9, _ or -)"
        )
    return escaped


def marker(section: str, *, closing: bool = False) -> str:
    return "{{" + ("/" if closing else "") + section + "}}"


def substitute(template: str, values: Mapping[str, str | None]) -> str:
    for key, value in values.items():
        if key not in TEMPLATE_KEYS:
            raise ValueError(f"Unknown template key: {key}")
        if value is None:
            continue
        template = template.replace(marker(key), value)
    return template


def remove_section(template: str, section: str) -> str:
    pattern = re.compile(
        re.escape(marker(section)) + r".*?" + re.escape(marker(section, closing=True)) + r"\n?",
        re.DOTALL,
    )
    return pattern.sub("", template)


def keep_section(template: str, section: str) -> str:
    pattern = re.compile(r"\{\{/?" + re.escape(section) + r"\}\}\n?")
    return pattern.sub("", template)


def render_template(
    template: str,
    substitutions: Mapping[str, str | None],
    remove_sections: Iterable[str] = (),
    keep_sections: Iterable[str] = (),
) -> str:
    template = substitute(template, substitutions)

    for section in remove_sections:
        template = remove_section(template, section)
    for section in keep_sections:
        template = keep_section(template, section)

    return template
