"""Template rendering for email notifications using Jinja2.

Wraps Jinja2 with strict undefined checking so a template that references a
missing field fails loudly instead of rendering a blank.
"""

import logging
from typing import Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from task_notifier.domain.models import Owner, RenderedNotification, Task

from .models import RenderError
from .payloads import build_notification_context

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders task notification mail from the package's email_templates.

    Rendering is a pure function of the context: no clock, no randomness.
    Templates are cached by Jinja2 after first load.
    """

    def __init__(
        self,
        template_dir: str = "email_templates",
        subject_template: str = "task_created_subject.j2",
        html_template: str = "task_created_body.html.j2",
        text_template: str = "task_created_body.txt.j2",
    ):
        """
        Args:
            template_dir: Directory name within the task_notifier.notifications package
            subject_template: Filename of subject line template
            html_template: Filename of HTML body template
            text_template: Filename of plain text body template
        """
        self.subject_template_name = subject_template
        self.html_template_name = html_template
        self.text_template_name = text_template

        self.env = Environment(
            loader=PackageLoader("task_notifier.notifications", template_dir),
            # Only the HTML body is escaped; subject and text go out as typed
            autoescape=select_autoescape(
                enabled_extensions=("html", "html.j2"),
                default_for_string=False,
                default=False,
            ),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, task: Task, owner: Owner) -> RenderedNotification:
        """Render the notification for ``task`` addressed to ``owner``.

        Raises:
            RenderError: If a required field is missing or a template fails
        """
        return self.render_context(build_notification_context(task, owner))

    def render_context(self, context: Dict) -> RenderedNotification:
        """Render all three templates from a prepared context.

        Raises:
            RenderError: If template rendering fails
        """
        try:
            subject_template = self.env.get_template(self.subject_template_name)
            html_template = self.env.get_template(self.html_template_name)
            text_template = self.env.get_template(self.text_template_name)

            # Subject must be a single header line
            subject = " ".join(subject_template.render(context).split())

            rendered = RenderedNotification(
                subject=subject,
                html_body=html_template.render(context),
                text_body=text_template.render(context),
            )
        except TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            logger.error(error_msg, exc_info=True)
            raise RenderError(error_msg) from e

        logger.debug(f"Rendered templates for task: {context.get('task_id', 'unknown')}")
        return rendered
