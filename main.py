#!/usr/bin/env python3
"""
Asset Crawler - Main Entry Point

This module provides the command-line interface for crawling a single site and
reporting every image, video source and anchor that references an external
asset domain, together with the size of each asset.

The target can be given on the command line, in a YAML configuration file, or
interactively when neither is provided.

Usage Examples:
    python main.py
    python main.py --domain www.example.com
    python main.py --domain www.example.com --asset-domain cdn.example.net --workers 1
    python main.py --config config.yaml --log-level DEBUG
"""

import argparse
import logging
import sys
from typing import Callable, Optional

from config import (
    DEFAULT_ASSET_DOMAIN, CrawlConfig, TargetConfig,
    load_config, validate_config
)
from crawler import AssetCrawler
from reporter import ProgressReporter, export_results, generate_report
from utils import setup_logging


def prompt_domain(input_func: Callable[[str], str] = input) -> str:
    """Ask for the domain to crawl"""
    return input_func("Enter the domain you want to crawl (without https://):\n").strip()


def prompt_asset_domain(input_func: Callable[[str], str] = input) -> str:
    """Ask whether a custom public-link domain is used; fall back to the default"""
    answer = input_func("Are you using a custom domain for public links? (yes/no):\n").strip().lower()
    if answer == "yes":
        custom = input_func("Enter the custom domain for public links:\n").strip()
        if custom:
            return custom
    return DEFAULT_ASSET_DOMAIN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Asset Crawler - find references to an asset domain across a website',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s
  %(prog)s --domain www.example.com
  %(prog)s --domain www.example.com --asset-domain cdn.example.net
  %(prog)s --config config.yaml --workers 1
        """
    )

    parser.add_argument('--domain',
                        help='Domain to crawl, without https:// (prompted if omitted)')
    parser.add_argument('--asset-domain',
                        help=f'Asset domain to look for (prompted if omitted, default: {DEFAULT_ASSET_DOMAIN})')
    parser.add_argument('--config',
                        help='Configuration file path (YAML)')
    parser.add_argument('--workers',
                        type=int,
                        help='Number of pages crawled in parallel (1 gives deterministic output order)')
    parser.add_argument('--delay',
                        type=float,
                        help='Delay in seconds before each page request (default: 0.3)')
    parser.add_argument('--timeout',
                        type=int,
                        help='Page request timeout in seconds (default: 30)')
    parser.add_argument('--strict-scope',
                        action='store_true',
                        help='Only follow links on exactly the same host as the base URL')
    parser.add_argument('--global-rate-limit',
                        action='store_true',
                        help='Apply the delay across all workers instead of per worker')
    parser.add_argument('--max-pages',
                        type=int,
                        help='Stop after this many pages')
    parser.add_argument('--time-limit',
                        type=float,
                        help='Stop after this many seconds')
    parser.add_argument('--output-dir',
                        help='Directory for the CSV files (default: current directory)')
    parser.add_argument('--log-level',
                        default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set logging level (default: INFO)')
    parser.add_argument('--log-file',
                        help='Optional log file path')
    parser.add_argument('--no-progress',
                        action='store_true',
                        help='Disable the progress bar')
    return parser


def build_config(args: argparse.Namespace,
                 input_func: Callable[[str], str] = input) -> CrawlConfig:
    """
    Build the crawl configuration from a config file, flags and prompts.

    Command-line flags override values from the configuration file. Missing
    domain values are asked for interactively.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        ValueError: If the resulting configuration is invalid
    """
    if args.config:
        config = load_config(args.config)
        if args.domain:
            config.target.domain = args.domain.strip()
        if args.asset_domain:
            config.target.asset_domain = args.asset_domain.strip()
    else:
        domain = args.domain.strip() if args.domain else prompt_domain(input_func)
        asset_domain = args.asset_domain.strip() if args.asset_domain else prompt_asset_domain(input_func)
        config = CrawlConfig(target=TargetConfig(domain=domain, asset_domain=asset_domain))

    settings = config.settings
    if args.workers is not None:
        settings.max_workers = args.workers
    if args.delay is not None:
        settings.delay_between_requests = args.delay
    if args.timeout is not None:
        settings.request_timeout = args.timeout
    if args.strict_scope:
        settings.strict_scope = True
    if args.global_rate_limit:
        settings.global_rate_limit = True
    if args.max_pages is not None:
        settings.max_pages = args.max_pages
    if args.time_limit is not None:
        settings.time_limit = args.time_limit
    if args.output_dir:
        config.output.output_dir = args.output_dir

    validate_config(config)
    return config


def main(argv: Optional[list] = None, input_func: Callable[[str], str] = input) -> int:
    """Main entry point for the crawler CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(log_level=args.log_level, log_file=args.log_file)
    except Exception as e:
        print(f"❌ Failed to set up logging: {str(e)}")
        return 1

    logger = logging.getLogger('asset_crawler')

    try:
        config = build_config(args, input_func)
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {args.config}")
        print("Please check the file path and try again.")
        return 1
    except (ValueError, EOFError) as e:
        print(f"❌ Invalid configuration: {str(e)}")
        return 1
    except Exception as e:
        print(f"❌ Failed to load configuration: {str(e)}")
        print("Please check the configuration file format and try again.")
        return 1

    try:
        reporter = ProgressReporter(show_progress_bar=not args.no_progress)
        crawler = AssetCrawler(config, observer=reporter)

        logger.info(f"Crawling {crawler.target.base_url} for links to {crawler.target.asset_domain}")
        results = crawler.crawl()

        print(generate_report(results))

        results_path, errors_path = export_results(results, config.output.output_dir)
        logger.info(f"Results written to {results_path} and {errors_path}")
        print(f"Results have been exported to {results_path}")
        print(f"Errors have been exported to {errors_path}")

    except PermissionError as e:
        logger.error(f"Permission error: {str(e)}")
        print(f"❌ Permission error: {str(e)}")
        print("Please check file/directory permissions and try again.")
        return 1
    except Exception as e:
        logger.error(f"Critical error: {str(e)}", exc_info=True)
        print(f"\n❌ Critical error: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
