"""Command-line interface for the catalog admin tools.

Usage:
    python -m catalog_admin.cli categories
    python -m catalog_admin.cli scrape-product --platform flipkart --url https://...
    python -m catalog_admin.cli scrape-category --platform flipkart --url https://... --main <id> --insert
"""

import argparse
import sys
from typing import Optional

from loguru import logger

from catalog_admin.bulk_upload.csv_preview import preview_upload
from catalog_admin.categories.selector import CategoryHierarchySelector
from catalog_admin.clients.base_client import ApiError
from catalog_admin.clients.catalog_client import CatalogApiClient
from catalog_admin.clients.scraping_client import ScrapingApiClient
from catalog_admin.config import AppConfig, load_config
from catalog_admin.exporters.excel_exporter import export_scraped_to_excel
from catalog_admin.history import ScrapingHistory, format_duration
from catalog_admin.insertion.inserter import ProductInserter
from catalog_admin.models import Category, CategorySelection
from catalog_admin.orchestrator import CategoryScrapeOrchestrator, CategoryScrapeResult
from catalog_admin.types import SUPPORTED_PLATFORMS


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru logging.

    Args:
        verbose: Whether to enable debug logging
    """
    logger.remove()

    log_level = "DEBUG" if verbose else "INFO"
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(sys.stderr, format=log_format, level=log_level, colorize=True)
    logger.add(
        "logs/catalog_admin_{time:YYYY-MM-DD}.log",
        format=log_format,
        level="DEBUG",
        rotation="1 day",
        retention="30 days",
    )


def _split_ids(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _print_tree(nodes: list[Category], depth: int = 0) -> None:
    for node in nodes:
        marker = "" if node.is_active else " (inactive)"
        print(f"{'  ' * depth}- {node.name} [{node.id}]{marker}")
        _print_tree(node.children, depth + 1)


def _resolve_selection(config: AppConfig, args: argparse.Namespace) -> Optional[CategorySelection]:
    if not args.main:
        if args.sub or args.sub_sub:
            raise ValueError("Please select a main category")
        return None

    with CatalogApiClient.from_config(config) as catalog:
        selector = CategoryHierarchySelector(catalog.get_category_tree())
    return selector.select_path(args.main, args.sub, args.sub_sub)


# -- Commands ----------------------------------------------------------------


def cmd_categories(config: AppConfig, args: argparse.Namespace) -> int:
    with CatalogApiClient.from_config(config) as catalog:
        tree = catalog.get_category_tree()

    if not tree:
        logger.warning("No categories found")
        return 0
    _print_tree(tree)
    return 0


def cmd_scrape_product(config: AppConfig, args: argparse.Namespace) -> int:
    history = ScrapingHistory(config.history_path)
    session = history.add_session(
        args.platform, "product", args.url, status="in_progress", action="scrape_product"
    )

    with ScrapingApiClient.from_config(config) as client:
        try:
            product = client.scrape_product(args.platform, args.url)
        except ApiError as e:
            history.update_session(
                session.id,
                status="failed",
                action="scraping_error",
                error_message=e.message,
                total_products=1,
                failed_products=1,
            )
            raise

    history.update_session(
        session.id,
        status="completed",
        action="scrape_product",
        total_products=1,
        scraped_products=1,
    )
    logger.success(f"Scraped: {product.title}")
    print(f"Price: {product.current_price} (MRP {product.original_price or '-'})")
    print(f"Rating: {product.rating or '-'} ({product.rating_count or 0} ratings)")
    for highlight in product.highlights:
        print(f"  * {highlight}")

    if args.export:
        export_scraped_to_excel([product], args.export)
    return 0


def cmd_scrape_category(config: AppConfig, args: argparse.Namespace) -> int:
    if args.insert and not args.main:
        raise ValueError("Please select a main category before inserting")

    selection = _resolve_selection(config, args)
    label = args.label or (selection.label if selection else args.url)

    history = ScrapingHistory(config.history_path)
    with CategoryScrapeOrchestrator.from_config(config) as orchestrator:
        page = orchestrator.fetch_category_page(args.platform, args.url, args.page)

        wanted = _split_ids(args.select)
        items = page.select(wanted) if wanted else page.products
        if args.limit:
            items = items[: args.limit]
        if not items:
            logger.warning("No products selected")
            return 1

        session = history.add_session(
            args.platform,
            "category",
            args.url,
            category=label,
            status="in_progress",
            action="start_category_scraping",
            operation_id=args.operation_id,
            total_products=len(items),
        )
        try:
            result = orchestrator.scrape_selected(
                args.platform,
                items,
                label,
                args.url,
                operation_id=args.operation_id,
            )
        except Exception as e:
            history.update_session(
                session.id,
                status="failed",
                action="category_scraping_failed",
                error_message=str(e),
            )
            raise

        if args.retry_failed:
            failed_items = [item for item in items if item.id in result.errors]
            for item in failed_items:
                if item.product_url:
                    orchestrator.retry_item(result, item)

    _record_result(history, session.id, result)
    _report(result)

    if args.export and result.detailed_products:
        export_scraped_to_excel(result.detailed_products.values(), args.export)

    if args.insert:
        with CatalogApiClient.from_config(config) as catalog:
            summary = ProductInserter(catalog).insert_many(
                result.detailed_products, selection, args.platform
            )
        if summary.failed:
            logger.warning(f"{summary.failed} products could not be inserted")
    return 0


def _record_result(history: ScrapingHistory, session_id: str, result: CategoryScrapeResult) -> None:
    history.update_session(
        session_id,
        status=result.status,
        action="complete_category_scraping",
        log_id=result.log_id,
        total_products=result.total,
        scraped_products=result.scraped,
        failed_products=result.failed,
        retry_count=result.retry_count,
    )


def _report(result: CategoryScrapeResult) -> None:
    progress = result.progress
    logger.info(
        f"Log {result.log_id}: {progress.current}/{progress.total} "
        f"({progress.percentage}%) in {format_duration(result.duration_ms)}"
    )
    for item_id, message in result.errors.items():
        logger.warning(f"✗ {item_id}: {message}")


def cmd_logs(config: AppConfig, args: argparse.Namespace) -> int:
    with ScrapingApiClient.from_config(config) as client:
        logs, pagination = client.list_scrape_logs(
            page=args.page,
            limit=args.limit,
            platform=args.platform,
            type=args.type,
            status=args.status,
            search=args.search,
        )

    for log in logs:
        print(
            f"{log.when}  {log.platform:<8} {log.type:<8} {log.status:<11} "
            f"{log.scraped_products}/{log.total_products} ({log.progress.percentage}%)  "
            f"{log.category or log.url}"
        )
    print(f"Page {pagination.current_page}/{pagination.total_pages} ({pagination.total_items} logs)")
    return 0


def cmd_log_stats(config: AppConfig, args: argparse.Namespace) -> int:
    with ScrapingApiClient.from_config(config) as client:
        stats = client.get_scrape_log_stats(
            args.start, args.end, platform=args.platform, type=args.type
        )

    print(f"Total: {stats.total}  Success rate: {stats.success_rate:.1f}%")
    for status, count in sorted(stats.counts.items()):
        print(f"  {status:<11} {count}")
    return 0


def cmd_operations(config: AppConfig, args: argparse.Namespace) -> int:
    with ScrapingApiClient.from_config(config) as client:
        if args.stats:
            for key, value in client.get_operations_stats().items():
                print(f"{key}: {value}")
            return 0

        operations, pagination = client.list_operations(
            page=args.page, limit=args.limit, status=args.status, seller=args.seller
        )

    for operation in operations:
        print(
            f"{operation.id}  {operation.seller:<10} {operation.status:<11} "
            f"{operation.progress.percentage:>3}%  {operation.url}"
        )
    print(f"Page {pagination.current_page}/{pagination.total_pages}")
    return 0


def cmd_bulk_upload(config: AppConfig, args: argparse.Namespace) -> int:
    preview = preview_upload(args.file)
    logger.info(
        f"{preview.path.name}: {preview.row_count} rows, columns: {', '.join(preview.columns)}"
    )
    if args.preview_only:
        for row in preview.head:
            print(row)
        return 0

    with CatalogApiClient.from_config(config) as catalog:
        response = catalog.bulk_upload_products(preview.path)
    logger.success(response.get("message") or "Bulk upload complete")
    return 0


def cmd_history(config: AppConfig, args: argparse.Namespace) -> int:
    history = ScrapingHistory(config.history_path)

    if args.clear:
        history.clear()
        logger.info("Scraping history cleared")
        return 0
    if args.import_file:
        with open(args.import_file, encoding="utf-8") as f:
            count = history.import_json(f.read())
        logger.success(f"Imported {count} sessions")
        return 0
    if args.export_file:
        with open(args.export_file, "w", encoding="utf-8") as f:
            f.write(history.export_json())
        logger.success(f"Exported history to {args.export_file}")
        return 0
    if args.stats:
        stats = history.statistics()
        print(
            f"Sessions: {stats.total_sessions} "
            f"(completed {stats.completed_sessions}, failed {stats.failed_sessions})"
        )
        print(
            f"Products: {stats.successful_products}/{stats.total_products} "
            f"({stats.average_success_rate:.1f}%), total time {format_duration(stats.total_duration)}"
        )
        for platform, group in stats.platform_stats.items():
            print(f"  {platform:<10} {group.sessions} sessions, {group.success_rate:.1f}%")
        return 0

    if args.platform:
        sessions = history.by_platform(args.platform)
    elif args.status:
        sessions = history.by_status(args.status)
    else:
        sessions = history.recent(args.recent)

    for session in sessions:
        print(
            f"{session.when}  {session.platform:<8} {session.type:<8} {session.status:<11} "
            f"{session.scraped_products}/{session.total_products}  "
            f"{format_duration(session.duration)}  {session.category or session.url}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Catalog admin: scrape marketplace products and manage the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the category tree
  python -m catalog_admin.cli categories

  # Scrape the first 10 products of a category and insert them
  python -m catalog_admin.cli scrape-category -p flipkart -u https://www.flipkart.com/... \\
      --limit 10 --main <main-id> --sub <sub-id> --insert

  # Recent scrape logs on the scraping service
  python -m catalog_admin.cli logs --status failed
        """,
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose debug logging"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    categories = commands.add_parser("categories", help="Print the category tree")
    categories.set_defaults(handler=cmd_categories)

    product = commands.add_parser("scrape-product", help="Scrape one product page")
    product.add_argument("--platform", "-p", required=True, choices=SUPPORTED_PLATFORMS)
    product.add_argument("--url", "-u", required=True, help="Product page URL")
    product.add_argument("--export", "-o", help="Write the product to this XLSX file")
    product.set_defaults(handler=cmd_scrape_product)

    category = commands.add_parser(
        "scrape-category", help="Scrape products listed on a category page"
    )
    category.add_argument("--platform", "-p", required=True, choices=SUPPORTED_PLATFORMS)
    category.add_argument("--url", "-u", required=True, help="Category page URL")
    category.add_argument("--page", type=int, default=1, help="Listing page (default: 1)")
    category.add_argument("--select", "-s", help="Comma-separated product ids to scrape")
    category.add_argument("--limit", type=int, help="Scrape at most N products")
    category.add_argument("--label", help="Category label stored on the scrape log")
    category.add_argument("--operation-id", help="Scraping operation to link the log to")
    category.add_argument("--main", help="Main category id")
    category.add_argument("--sub", help="Sub category id")
    category.add_argument("--sub-sub", help="Sub-sub category id")
    category.add_argument(
        "--retry-failed", action="store_true", help="Retry each failed product once"
    )
    category.add_argument(
        "--insert", action="store_true", help="Insert scraped products into the catalog"
    )
    category.add_argument("--export", "-o", help="Write scraped products to this XLSX file")
    category.set_defaults(handler=cmd_scrape_category)

    logs = commands.add_parser("logs", help="List scrape logs")
    logs.add_argument("--page", type=int, default=1)
    logs.add_argument("--limit", type=int, default=20)
    logs.add_argument("--platform")
    logs.add_argument("--type", choices=["product", "category"])
    logs.add_argument("--status")
    logs.add_argument("--search")
    logs.set_defaults(handler=cmd_logs)

    log_stats = commands.add_parser("log-stats", help="Scrape log statistics")
    log_stats.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    log_stats.add_argument("--end", required=True, help="End date (YYYY-MM-DD)")
    log_stats.add_argument("--platform")
    log_stats.add_argument("--type", choices=["product", "category"])
    log_stats.set_defaults(handler=cmd_log_stats)

    operations = commands.add_parser("operations", help="List scraping operations")
    operations.add_argument("--page", type=int, default=1)
    operations.add_argument("--limit", type=int, default=20)
    operations.add_argument("--status")
    operations.add_argument("--seller")
    operations.add_argument("--stats", action="store_true", help="Show statistics instead")
    operations.set_defaults(handler=cmd_operations)

    upload = commands.add_parser("bulk-upload", help="Upload a CSV/XLSX product file")
    upload.add_argument("file", help="CSV or Excel file")
    upload.add_argument(
        "--preview-only", action="store_true", help="Only show a local preview"
    )
    upload.set_defaults(handler=cmd_bulk_upload)

    history = commands.add_parser("history", help="Local scraping history")
    history.add_argument("--recent", type=int, default=10)
    history.add_argument("--platform")
    history.add_argument("--status")
    history.add_argument("--stats", action="store_true")
    history.add_argument("--export", dest="export_file")
    history.add_argument("--import", dest="import_file")
    history.add_argument("--clear", action="store_true")
    history.set_defaults(handler=cmd_history)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config()
        return args.handler(config, args)
    except (ApiError, ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
