#!/usr/bin/env python3
"""
Unit Tests for Core Functions

This module contains unit tests for the core functionality of the asset crawler,
including URL resolution and scope checks, asset classification, configuration
loading and utility functions.
"""

import pytest
import yaml

from config import (
    DEFAULT_ASSET_DOMAIN, CrawlConfig, CrawlSettings, TargetConfig,
    build_base_url, load_config, save_config_to_yaml, validate_config
)
from discovery import AssetClassifier, NO_TITLE, extract_links, extract_title, parse_page
from models import CrawlTarget, ItemType
from utils import (
    canonical_page_url, clean_for_filename, decode_entities, format_duration,
    format_file_size, get_file_timestamp, in_scope, resolve_url
)


class TestURLResolution:
    """Test resolving hrefs against a base URL"""

    def test_parent_relative_href(self):
        """Test '../' resolution against a nested page"""
        assert resolve_url('https://site.com/dir/page.html', '../other.html') == 'https://site.com/other.html'

    def test_sibling_relative_href(self):
        assert resolve_url('https://site.com/dir/page.html', 'next.html') == 'https://site.com/dir/next.html'

    def test_root_relative_href(self):
        assert resolve_url('https://site.com/dir/page.html', '/about') == 'https://site.com/about'

    def test_absolute_href(self):
        assert resolve_url('https://site.com/', 'https://other.com/x') == 'https://other.com/x'

    def test_protocol_relative_href(self):
        """Test that protocol-relative hrefs take the base scheme"""
        assert resolve_url('https://site.com/a', '//cdn.aprimocdn.net/x.jpg') == 'https://cdn.aprimocdn.net/x.jpg'

    def test_fragment_only_href(self):
        assert resolve_url('https://site.com/a', '#top') == 'https://site.com/a#top'

    def test_relative_base_returns_none(self):
        """Test that a non-absolute base is rejected instead of raising"""
        assert resolve_url('/just/a/path', 'page.html') is None

    def test_invalid_href_returns_none(self):
        """Test that unparseable URLs are reported as None"""
        assert resolve_url('https://site.com/', 'http://[::1') is None

    def test_invalid_port_returns_none(self):
        assert resolve_url('https://site.com/', 'https://site.com:99999999/') is None

    def test_none_inputs(self):
        assert resolve_url(None, 'a') is None
        assert resolve_url('https://site.com/', None) is None


class TestEntityDecoding:
    """Test HTML entity decoding of extracted URLs"""

    def test_amp_entity(self):
        assert decode_entities('/a?x=1&amp;y=2') == '/a?x=1&y=2'

    def test_numeric_entity(self):
        assert decode_entities('/a&#47;b') == '/a/b'

    def test_plain_url_unchanged(self):
        assert decode_entities('https://cdn.aprimocdn.net/x.jpg') == 'https://cdn.aprimocdn.net/x.jpg'

    def test_empty(self):
        assert decode_entities('') == ''


class TestScope:
    """Test scope containment checks"""

    def test_prefix_match(self):
        assert in_scope('https://site.com/a/b', 'https://site.com') is True

    def test_other_host(self):
        assert in_scope('https://other.com/', 'https://site.com') is False

    def test_other_scheme(self):
        assert in_scope('http://site.com/', 'https://site.com') is False

    def test_prefix_check_admits_suffix_host(self):
        """Test the coarse default: a longer host sharing the prefix is in scope"""
        assert in_scope('https://site.com.evil.com/x', 'https://site.com') is True

    def test_strict_rejects_suffix_host(self):
        assert in_scope('https://site.com.evil.com/x', 'https://site.com', strict=True) is False

    def test_strict_accepts_same_host(self):
        assert in_scope('https://site.com/x', 'https://site.com', strict=True) is True

    def test_empty_values(self):
        assert in_scope('', 'https://site.com') is False
        assert in_scope('https://site.com/', '') is False


class TestCanonicalPageUrl:
    """Test page URL canonicalization"""

    def test_fragment_removed(self):
        assert canonical_page_url('https://site.com/a#top') == 'https://site.com/a'

    def test_empty_path_becomes_slash(self):
        assert canonical_page_url('https://site.com') == 'https://site.com/'

    def test_query_kept(self):
        assert canonical_page_url('https://site.com/a?p=2#x') == 'https://site.com/a?p=2'


class TestAssetClassifier:
    """Test asset candidate extraction"""

    def setup_method(self):
        self.classifier = AssetClassifier('aprimocdn.net')

    def test_scan_order_images_videos_anchors(self):
        """Test that images come first, then video sources, then anchors"""
        soup = parse_page("""
        <html><body>
            <a href="https://cdn.aprimocdn.net/doc.pdf">Doc</a>
            <video><source src="https://cdn.aprimocdn.net/v.mp4"></video>
            <img src="https://cdn.aprimocdn.net/x.jpg">
        </body></html>
        """)

        candidates = list(self.classifier.extract_candidates(soup))

        assert candidates == [
            (ItemType.IMAGE, 'https://cdn.aprimocdn.net/x.jpg'),
            (ItemType.VIDEO, 'https://cdn.aprimocdn.net/v.mp4'),
            (ItemType.ANCHOR, 'https://cdn.aprimocdn.net/doc.pdf'),
        ]

    def test_non_matching_references_skipped(self):
        soup = parse_page("""
        <img src="https://images.other.com/x.jpg">
        <img>
        <a href="/local/page">Local</a>
        <source src="https://cdn.aprimocdn.net/outside-video.mp4">
        """)

        assert list(self.classifier.extract_candidates(soup)) == []

    def test_entities_decoded(self):
        """Test that &amp; in an attribute does not survive extraction"""
        soup = parse_page('<img src="https://cdn.aprimocdn.net/a?x=1&amp;y=2">')

        candidates = list(self.classifier.extract_candidates(soup))

        assert candidates == [(ItemType.IMAGE, 'https://cdn.aprimocdn.net/a?x=1&y=2')]

    def test_entities_decoded_only_once(self):
        """Test that escaped ampersands before entity-like names stay literal"""
        soup = parse_page("""
        <img src="https://cdn.aprimocdn.net/a?x=1&amp;reg=2">
        <video><source src="https://cdn.aprimocdn.net/v?a=1&amp;copy=2&amp;not=3"></video>
        <a href="https://cdn.aprimocdn.net/d?q=A&amp;amp;B">Doc</a>
        """)

        candidates = list(self.classifier.extract_candidates(soup))

        assert candidates == [
            (ItemType.IMAGE, 'https://cdn.aprimocdn.net/a?x=1&reg=2'),
            (ItemType.VIDEO, 'https://cdn.aprimocdn.net/v?a=1&copy=2&not=3'),
            (ItemType.ANCHOR, 'https://cdn.aprimocdn.net/d?q=A&amp;B'),
        ]

    def test_utf8_bytes_use_meta_charset(self):
        """Test that byte content is decoded from the page's <meta charset>"""
        soup = parse_page('<meta charset="utf-8"><title>Café Ü</title>'.encode('utf-8'))

        assert extract_title(soup) == 'Café Ü'

    def test_candidates_are_lazy(self):
        soup = parse_page('<img src="https://cdn.aprimocdn.net/1.jpg"><img src="https://cdn.aprimocdn.net/2.jpg">')

        candidates = self.classifier.extract_candidates(soup)

        assert next(candidates) == (ItemType.IMAGE, 'https://cdn.aprimocdn.net/1.jpg')
        assert next(candidates) == (ItemType.IMAGE, 'https://cdn.aprimocdn.net/2.jpg')
        with pytest.raises(StopIteration):
            next(candidates)

    def test_empty_asset_domain_rejected(self):
        with pytest.raises(ValueError):
            AssetClassifier('')


class TestPageParsing:
    """Test title and link extraction"""

    def test_title_extracted(self):
        assert extract_title(parse_page('<html><head><title> Home </title></head></html>')) == 'Home'

    def test_missing_title(self):
        assert extract_title(parse_page('<html><body>No head</body></html>')) == NO_TITLE

    def test_links_include_asset_anchors(self):
        """Test that link discovery sees every anchor regardless of asset matching"""
        soup = parse_page("""
        <a href="/a">A</a>
        <a href="https://cdn.aprimocdn.net/doc.pdf">Doc</a>
        <a>No href</a>
        <a href="b.html">B</a>
        """)

        assert extract_links(soup) == ['/a', 'https://cdn.aprimocdn.net/doc.pdf', 'b.html']


class TestConfigurationLoading:
    """Test configuration loading and validation"""

    def test_load_valid_yaml_config(self, tmp_path):
        """Test loading a valid YAML configuration"""
        config_data = {
            'target': {
                'domain': 'www.example.com',
                'asset_domain': 'cdn.example.net'
            },
            'settings': {
                'delay_between_requests': 1.5,
                'max_workers': 2,
                'strict_scope': True,
                'max_pages': 50
            },
            'output': {
                'output_dir': './reports'
            }
        }
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(yaml.dump(config_data), encoding='utf-8')

        config = load_config(str(config_path))

        assert isinstance(config, CrawlConfig)
        assert config.target.domain == 'www.example.com'
        assert config.target.asset_domain == 'cdn.example.net'
        assert config.settings.delay_between_requests == 1.5
        assert config.settings.max_workers == 2
        assert config.settings.strict_scope is True
        assert config.settings.max_pages == 50
        assert config.settings.time_limit is None
        assert config.output.output_dir == './reports'

    def test_default_asset_domain(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(yaml.dump({'target': {'domain': 'example.com'}}), encoding='utf-8')

        config = load_config(str(config_path))

        assert config.target.asset_domain == DEFAULT_ASSET_DOMAIN
        assert config.settings.delay_between_requests == 0.3

    def test_load_config_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config('/nonexistent/config.yaml')

    def test_load_config_invalid_yaml(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('invalid: yaml: content: [', encoding='utf-8')

        with pytest.raises(yaml.YAMLError):
            load_config(str(config_path))

    def test_load_config_missing_target(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text(yaml.dump({'settings': {'max_workers': 2}}), encoding='utf-8')

        with pytest.raises(ValueError, match="must contain 'target'"):
            load_config(str(config_path))

    def test_load_config_empty_file(self, tmp_path):
        config_path = tmp_path / 'config.yaml'
        config_path.write_text('', encoding='utf-8')

        with pytest.raises(ValueError, match="empty"):
            load_config(str(config_path))

    def test_save_and_reload(self, tmp_path):
        """Test that a saved configuration loads back unchanged"""
        config = CrawlConfig(
            target=TargetConfig(domain='example.com', asset_domain='cdn.example.net'),
            settings=CrawlSettings(max_workers=1, time_limit=60.0)
        )
        config_path = tmp_path / 'saved.yaml'

        save_config_to_yaml(config, str(config_path))
        reloaded = load_config(str(config_path))

        assert reloaded == config

    def test_invalid_settings_rejected(self):
        config = CrawlConfig(
            target=TargetConfig(domain='example.com'),
            settings=CrawlSettings(max_workers=0)
        )
        with pytest.raises(ValueError, match="max_workers"):
            validate_config(config)

    def test_domain_with_scheme_rejected(self):
        config = CrawlConfig(target=TargetConfig(domain='https://example.com'))
        with pytest.raises(ValueError, match="scheme"):
            validate_config(config)

    def test_crawl_target(self):
        config = CrawlConfig(
            target=TargetConfig(domain='example.com', asset_domain='aprimocdn.net'),
            settings=CrawlSettings(strict_scope=True)
        )

        assert config.crawl_target() == CrawlTarget(
            base_url='https://example.com',
            asset_domain='aprimocdn.net',
            strict_scope=True
        )

    def test_build_base_url(self):
        assert build_base_url(' example.com ') == 'https://example.com'
        with pytest.raises(ValueError):
            build_base_url('  ')


class TestUtilityFunctions:
    """Test formatting helpers"""

    def test_clean_for_filename(self):
        assert clean_for_filename('www.example.com') == 'www_example_com'

    def test_file_timestamp_format(self):
        timestamp = get_file_timestamp()
        assert len(timestamp) == 14
        assert timestamp.isdigit()

    def test_format_file_size(self):
        assert format_file_size(0) == "0 B"
        assert format_file_size(512) == "512.0 B"
        assert format_file_size(1536) == "1.5 KB"

    def test_format_duration(self):
        assert format_duration(12.34) == "12.3s"
        assert format_duration(125) == "2m 5s"
        assert format_duration(3725) == "1h 2m 5s"
