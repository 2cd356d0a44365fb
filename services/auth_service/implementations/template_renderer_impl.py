"""Jinja2 template renderer for Auth Service emails.

Templates live in ``services/auth_service/templates`` as ``<template_id>.html.j2``
and declare their subject in a leading ``<!-- subject: ... -->`` comment.
"""

from __future__ import annotations

import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from techvault_service_libs.error_handling import raise_validation_error
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.protocols import RenderedTemplate, TemplateRenderer

logger = create_service_logger("auth_service.template_renderer")

_SUBJECT_PATTERN = re.compile(r"<!--\s*subject:\s*(.+?)\s*-->", re.IGNORECASE)


class JinjaTemplateRenderer(TemplateRenderer):
    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_dir = template_dir or Path(__file__).parent.parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            enable_async=True,
        )

    async def render(self, template_id: str, variables: dict[str, str]) -> RenderedTemplate:
        """Render ``template_id`` with ``variables``.

        Raises:
            TechVaultError: VALIDATION_ERROR if the template does not exist
        """
        template_filename = f"{template_id}.html.j2"
        try:
            template = self.env.get_template(template_filename)
        except TemplateNotFound:
            logger.error(f"Template not found: {template_filename}")
            raise_validation_error(
                service="auth_service",
                operation="render_template",
                field="template_id",
                message=f"Template not found: {template_id}",
                value=template_id,
            )

        html_content = await template.render_async(**variables)

        match = _SUBJECT_PATTERN.search(html_content)
        if match:
            subject = match.group(1).strip()
        else:
            logger.warning(f"No subject found in template {template_filename}, using default")
            subject = "TechVault notification"

        return RenderedTemplate(
            subject=subject,
            html_content=html_content,
            text_content=self._generate_text_content(html_content),
        )

    def _generate_text_content(self, html_content: str) -> str:
        """Plain-text alternative for clients that do not render HTML."""
        text_content = re.sub(r"<!--.*?-->", "", html_content, flags=re.DOTALL)
        text_content = re.sub(
            r"<(style|title)[^>]*>.*?</\1>", "", text_content, flags=re.DOTALL | re.IGNORECASE
        )
        text_content = re.sub(r"<br\s*/?>", "\n", text_content, flags=re.IGNORECASE)
        text_content = re.sub(r"</?(p|div|h\d)[^>]*>", "\n", text_content, flags=re.IGNORECASE)
        text_content = re.sub(r"<[^>]+>", "", text_content)

        for entity, char in (
            ("&nbsp;", " "),
            ("&lt;", "<"),
            ("&gt;", ">"),
            ("&quot;", '"'),
            ("&#39;", "'"),
            ("&amp;", "&"),
        ):
            text_content = text_content.replace(entity, char)

        text_content = re.sub(r"[ \t]+", " ", text_content)
        text_content = re.sub(r"\n\s*\n+", "\n\n", text_content)
        return text_content.strip()
