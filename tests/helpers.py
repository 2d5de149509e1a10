"""Shared test data."""

import base64

# 1x1 transparent PNG
PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

PROJECT_FILES = {
    "assets/application.js": b"this is js content",
    "assets/pixel.png": PIXEL_PNG,
    "config/settings_data.json": b'{"current":"Default"}',
    "layout/theme.liquid": b"<html>{{ content_for_layout }}</html>",
    "locales/en.default.json": b'{"general":{"title":"Hello"}}',
    "snippets/snippet.js": b"console.log('snippet');",
    "templates/template.liquid": b"<h1>template</h1>",
    "templates/customers/test.liquid": b"<h1>customers</h1>",
}
