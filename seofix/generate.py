"""
CLI entrypoint for a fix generation pass, e.g. right after the audit pipeline finishes:

  python -m seofix.generate AUDIT_ID

Safe to re-run: fixes that already exist for the audit are not created again.
"""

import argparse
import asyncio
import logging
import sys

from seofix.core.config import get_settings
from seofix.core.database import session_scope
from seofix.services.cms_adapter import build_cms_adapter
from seofix.services.errors import FixEngineError
from seofix.services.fix_generation import generate_fixes

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate PENDING fixes for an audit.")
    parser.add_argument("audit_id", help="Audit id as stored by the audit pipeline")
    args = parser.parse_args(argv)

    try:
        adapter = build_cms_adapter(get_settings())
        with session_scope() as db:
            created = asyncio.run(generate_fixes(db, adapter, args.audit_id))
        logger.info("Fix generation completed: audit_id=%s created=%s", args.audit_id, created)
        return 0
    except FixEngineError as e:
        logger.error("Fix generation failed: audit_id=%s reason=%s", args.audit_id, e.message)
        return 1
    except Exception as e:
        logger.exception("Fix generation job failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
