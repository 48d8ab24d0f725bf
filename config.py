"""
Configuration management for the asset crawler.

This module handles loading configuration from YAML files, saving it back,
and building the crawl target from a bare domain name.
"""

import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from models import CrawlTarget


DEFAULT_ASSET_DOMAIN = "aprimocdn.net"
DEFAULT_USER_AGENT = "AssetCrawler/1.0"


@dataclass
class TargetConfig:
    """Site to crawl and the asset domain to look for."""
    domain: str
    asset_domain: str = DEFAULT_ASSET_DOMAIN


@dataclass
class CrawlSettings:
    """General crawling settings."""
    delay_between_requests: float = 0.3
    max_workers: int = 4
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 30
    probe_timeout: int = 10
    strict_scope: bool = False
    global_rate_limit: bool = False
    max_pages: Optional[int] = None
    time_limit: Optional[float] = None  # seconds


@dataclass
class OutputConfig:
    """Where the result files are written."""
    output_dir: str = "."


@dataclass
class CrawlConfig:
    """Main configuration object containing all settings."""
    target: TargetConfig
    settings: CrawlSettings = field(default_factory=CrawlSettings)
    output: OutputConfig = field(default_factory=OutputConfig)

    def crawl_target(self) -> CrawlTarget:
        return CrawlTarget(
            base_url=build_base_url(self.target.domain),
            asset_domain=self.target.asset_domain,
            strict_scope=self.settings.strict_scope
        )


def build_base_url(domain: str) -> str:
    """
    Turn a bare domain into the crawl's base URL by prepending https://

    Raises:
        ValueError: If the domain is empty
    """
    domain = (domain or "").strip()
    if not domain:
        raise ValueError("Domain must not be empty")
    return f"https://{domain}"


def validate_config(config: CrawlConfig) -> None:
    """
    Validate a configuration object.

    Raises:
        ValueError: If any setting is out of range
    """
    if not config.target.domain or not config.target.domain.strip():
        raise ValueError("Target domain must not be empty")

    if "://" in config.target.domain:
        raise ValueError(f"Target domain must not include a scheme: {config.target.domain}")

    if not config.target.asset_domain or not config.target.asset_domain.strip():
        raise ValueError("Asset domain must not be empty")

    settings = config.settings
    if settings.delay_between_requests < 0:
        raise ValueError("delay_between_requests must not be negative")
    if settings.max_workers < 1:
        raise ValueError("max_workers must be at least 1")
    if settings.request_timeout <= 0 or settings.probe_timeout <= 0:
        raise ValueError("Timeouts must be positive")
    if settings.max_pages is not None and settings.max_pages < 1:
        raise ValueError("max_pages must be at least 1")
    if settings.time_limit is not None and settings.time_limit <= 0:
        raise ValueError("time_limit must be positive")


def load_config(config_path: str) -> CrawlConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        CrawlConfig object with loaded configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValueError: If configuration is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML configuration: {e}")

    if not data:
        raise ValueError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping")

    if 'target' not in data:
        raise ValueError("Configuration must contain 'target' section")

    target_data = data['target']
    if not isinstance(target_data, dict):
        raise ValueError("'target' configuration must be a dictionary")

    if not target_data.get('domain'):
        raise ValueError("'target' must have a 'domain' field")

    target = TargetConfig(
        domain=str(target_data['domain']).strip(),
        asset_domain=str(target_data.get('asset_domain') or DEFAULT_ASSET_DOMAIN).strip()
    )

    settings_data = data.get('settings') or {}
    settings = CrawlSettings(
        delay_between_requests=float(settings_data.get('delay_between_requests', 0.3)),
        max_workers=int(settings_data.get('max_workers', 4)),
        user_agent=settings_data.get('user_agent', DEFAULT_USER_AGENT),
        request_timeout=settings_data.get('request_timeout', 30),
        probe_timeout=settings_data.get('probe_timeout', 10),
        strict_scope=bool(settings_data.get('strict_scope', False)),
        global_rate_limit=bool(settings_data.get('global_rate_limit', False)),
        max_pages=settings_data.get('max_pages'),
        time_limit=settings_data.get('time_limit')
    )

    output_data = data.get('output') or {}
    output = OutputConfig(
        output_dir=output_data.get('output_dir', ".")
    )

    config = CrawlConfig(target=target, settings=settings, output=output)
    validate_config(config)
    return config


def save_config_to_yaml(config: CrawlConfig, output_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: CrawlConfig object to save
        output_path: Path where to save the YAML file
    """
    config_dict = {
        'target': {
            'domain': config.target.domain,
            'asset_domain': config.target.asset_domain
        },
        'settings': {
            'delay_between_requests': config.settings.delay_between_requests,
            'max_workers': config.settings.max_workers,
            'user_agent': config.settings.user_agent,
            'request_timeout': config.settings.request_timeout,
            'probe_timeout': config.settings.probe_timeout,
            'strict_scope': config.settings.strict_scope,
            'global_rate_limit': config.settings.global_rate_limit,
            'max_pages': config.settings.max_pages,
            'time_limit': config.settings.time_limit
        },
        'output': {
            'output_dir': config.output.output_dir
        }
    }

    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False, indent=2)
