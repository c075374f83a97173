# backend/app/services/template_service.py
"""
Template rendering service.

Renders the Jinja2 email templates under app/templates with a shared set of
brand variables.
"""

from datetime import date, datetime, time
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from .base import BaseService
from .template_registry import TemplateRegistry

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def currency(value: Any) -> str:
    return f"${float(value or 0):,.2f}"


def format_date(value: Union[date, datetime, str], format_str: str = "%B %d, %Y") -> str:
    if isinstance(value, str):
        return value  # Already formatted
    return value.strftime(format_str)


def format_time(value: Union[time, datetime, str], format_str: str = "%I:%M %p") -> str:
    if isinstance(value, str):
        return value
    return value.strftime(format_str).lstrip("0")


class TemplateService(BaseService):
    """Centralized template rendering using Jinja2."""

    def __init__(self, template_dir: Optional[Path] = None):
        super().__init__(None)
        self.env = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self.env.filters["currency"] = currency
        self.env.filters["format_date"] = format_date
        self.env.filters["format_time"] = format_time

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "current_year": datetime.now().year,
            "frontend_url": settings.frontend_url,
            "support_email": settings.from_email,
        }

    @BaseService.measure_operation("render_template")
    def render_template(
        self,
        template_name: Union[TemplateRegistry, str],
        context: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> str:
        """
        Render a template with the common context merged in.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        name = template_name.value if isinstance(template_name, TemplateRegistry) else template_name
        try:
            template = self.env.get_template(name)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)
        return template.render(full_context)
