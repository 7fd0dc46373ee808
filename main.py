# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from core.ad_client import ActiveDirectoryClient
from core.enumerator import EntryEnumerator
from core.errors import DirectoryQueryError, InvalidInput
from core.models import AccountCategory
from core.namespace import namespace_labels, resolve_namespace
from core.report import ReportAssembler
from utils.config import Config


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"password_never_expires_audit_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always gets DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def selected_categories(include_users: bool, include_computers: bool) -> List[AccountCategory]:
    """Categories to audit; both when neither selector is set"""
    if not include_users and not include_computers:
        return [AccountCategory.USERS, AccountCategory.COMPUTERS]
    categories = []
    if include_users:
        categories.append(AccountCategory.USERS)
    if include_computers:
        categories.append(AccountCategory.COMPUTERS)
    return categories


def default_output_path(namespace: str, now: Optional[datetime] = None) -> str:
    """NonExpiringPasswords_<labels>_<timestamp>.csv in the working directory"""
    now = now or datetime.now()
    labels = namespace_labels(namespace) or ["domain"]
    return f"NonExpiringPasswords_{'_'.join(labels)}_{now.strftime('%Y%m%d_%H%M%S')}.csv"


def prompt_for_domain() -> str:
    """Ask for the domain interactively"""
    return input("Domain (e.g. example.com) or search base DN: ")


def run_audit(ad_client: ActiveDirectoryClient, namespace: str, categories: List[AccountCategory],
              output_path: str, page_size: int = 1000) -> bool:
    """
    Enumerate every category and write the report.

    A failed category does not stop the others, but the report is only
    written when all of them succeeded.

    Returns:
        True when the report was written
    """
    logger = logging.getLogger(__name__)
    enumerator = EntryEnumerator(ad_client, page_size=page_size)
    report = ReportAssembler()
    failed = []

    for category in categories:
        try:
            added = report.add(enumerator.enumerate_accounts(namespace, category))
            logger.info(f"Collected {added} {category.label} account(s)")
        except DirectoryQueryError as e:
            logger.error(f"Query for {category.label} failed: {e}")
            failed.append(category.label)

    if failed:
        logger.error(f"No report written, failed categories: {', '.join(failed)}")
        return False

    rows = report.write(output_path)
    logger.info(f"Report with {rows} account(s) written to {output_path}")
    return True


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Audit Active Directory for accounts whose password never expires"
    )
    parser.add_argument('--domain', help='Domain name (example.com) or search base (DC=example,DC=com)')
    parser.add_argument('--users', action='store_true', help='Audit user accounts')
    parser.add_argument('--computers', action='store_true', help='Audit computer accounts')
    parser.add_argument('--output', help='Output CSV file path')
    parser.add_argument('--page-size', type=int, help='LDAP page size (default: AD_PAGE_SIZE or 1000)')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    args = parser.parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    config = Config()

    try:
        namespace = resolve_namespace(args.domain or config.ad_domain or prompt_for_domain())
    except InvalidInput as e:
        logger.error(f"Invalid domain: {e}")
        sys.exit(1)
    except (EOFError, KeyboardInterrupt):
        logger.error("No domain entered - pass --domain or set AD_DOMAIN")
        sys.exit(1)
    logger.info(f"Search base: {namespace}")

    if not config.validate_ad_config():
        missing_vars = config.get_missing_ad_vars()
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    output_path = args.output or default_output_path(namespace)
    categories = selected_categories(args.users, args.computers)

    try:
        page_size = args.page_size or config.page_size
        with ActiveDirectoryClient(
                config.ad_server, config.ad_username, config.ad_password,
                use_ssl=config.use_ssl, connect_timeout=config.connect_timeout
        ) as ad_client:
            if not ad_client.connection:
                logger.error("Could not connect to Active Directory - check AD_SERVER and credentials")
                sys.exit(1)

            if not run_audit(ad_client, namespace, categories, output_path, page_size):
                sys.exit(1)

    except (ValueError, OSError) as e:
        logger.error(f"Audit failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
