from pathlib import Path

import pytest

from folio.config import CollectionConfig, load_config
from folio.data import load_data
from folio.errors import ConfigError, DataError


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_config_uses_defaults(tmp_path):
    config = load_config(tmp_path)
    assert config.site.title == "Folio Site"
    assert config.base_url == "http://localhost:3000"
    assert [c.name for c in config.collections] == ["posts", "pages"]
    assert config.languages.all == ("en",)
    assert config.build.output_dir == "dist"
    assert config.images.optimize is True
    assert config.images.widths == (480, 800, 1200)
    assert config.images.webp is True


def test_full_config(tmp_path):
    write(
        tmp_path / "folio.yaml",
        "site:\n"
        "  title: My Site\n"
        "  base_url: https://example.com/blog/\n"
        "  language: en\n"
        "collections:\n"
        "  - posts\n"
        "  - name: docs\n"
        "    paginate: 5\n"
        "  - name: recipes\n"
        "    url_prefix: food/\n"
        "    has_date: true\n"
        "languages:\n"
        "  es:\n"
        "    title: Mi Sitio\n"
        "  fr: {}\n"
        "build:\n"
        "  output_dir: public_html\n"
        "  workers: 2\n"
        "images:\n"
        "  max_width: 800\n"
        "  widths: [800, 320, 800]\n"
        "  webp: false\n",
    )
    config = load_config(tmp_path)
    assert config.base_url == "https://example.com/blog"
    assert [c.name for c in config.collections] == ["posts", "docs", "recipes"]
    docs = config.collection("docs")
    assert docs.nested is True
    assert docs.paginate == 5
    recipes = config.collection("recipes")
    assert recipes.url_prefix == "/food"
    assert recipes.label == "Recipes"
    assert recipes.has_date is True
    assert config.languages.all == ("en", "es", "fr")
    assert config.languages.prefix("es") == "/es"
    assert config.languages.prefix("en") == ""
    assert config.languages.title_for("es", "fallback") == "Mi Sitio"
    assert config.languages.title_for("fr", "fallback") == "fallback"
    assert config.build.output_dir == "public_html"
    assert config.build.workers == 2
    assert config.images.max_width == 800
    assert config.images.widths == (320, 800)
    assert config.images.webp is False
    assert config.images.lazy_loading is True


def test_yml_extension_is_accepted(tmp_path):
    write(tmp_path / "folio.yml", "site:\n  title: Short\n")
    assert load_config(tmp_path).site.title == "Short"


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("site: [1, 2]\n", "`site` must be a mapping"),
        ("site:\n  colour: red\n", "unknown keys colour"),
        ("collections:\n  - blog\n", "unknown collection preset 'blog'"),
        ("collections:\n  - posts\n  - posts\n", "duplicate collections: posts"),
        ("collections:\n  - name: posts\n    paginate: 0\n", "`paginate` must be a positive integer"),
        ("collections:\n  - name: posts\n    rss: true\n", "unknown keys rss"),
        ("languages: [es]\n", "`languages` must be a mapping"),
        ("images:\n  widths: 480\n", "`images.widths` must be a list of positive integers"),
        ("images:\n  widths: [0]\n", "`images.widths` must be a list of positive integers"),
        ("site: {title: [unclosed\n", "invalid YAML"),
        ("- just\n- a list\n", "configuration must be a mapping"),
    ],
)
def test_invalid_config(tmp_path, text, fragment):
    path = write(tmp_path / "folio.yaml", text)
    with pytest.raises(ConfigError) as excinfo:
        load_config(tmp_path)
    assert fragment in str(excinfo.value)
    assert excinfo.value.source_path == path


def test_collection_from_mapping_requires_name():
    with pytest.raises(ConfigError):
        CollectionConfig.from_mapping({"directory": "x"})


def test_load_data_nested(tmp_path):
    data_dir = tmp_path / "data"
    write(data_dir / "site.yaml", "author: Ada\n")
    write(data_dir / "nav.json", '[{"label": "Home", "url": "/"}]')
    write(data_dir / "i18n" / "es.yml", "min_read: minutos\n")
    write(data_dir / "_private.yaml", "secret: true\n")
    write(data_dir / "README.txt", "ignored")

    data = load_data(data_dir)
    assert data["site"] == {"author": "Ada"}
    assert data["nav"][0]["label"] == "Home"
    assert data["i18n"]["es"]["min_read"] == "minutos"
    assert "_private" not in data
    assert "README" not in data


def test_load_data_missing_dir(tmp_path):
    assert load_data(tmp_path / "nope") == {}


def test_load_data_duplicate_key(tmp_path):
    data_dir = tmp_path / "data"
    write(data_dir / "nav.yaml", "a: 1\n")
    write(data_dir / "nav.json", "{}")
    with pytest.raises(DataError) as excinfo:
        load_data(data_dir)
    assert "nav" in str(excinfo.value)


def test_load_data_parse_error(tmp_path):
    data_dir = tmp_path / "data"
    bad = write(data_dir / "broken.json", "{not json")
    with pytest.raises(DataError) as excinfo:
        load_data(data_dir)
    assert excinfo.value.source_path == bad
