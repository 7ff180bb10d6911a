from __future__ import annotations

import pytest

from file_browser.services import filetypes


@pytest.mark.parametrize(
    'name,expected',
    [
        ('README.md', 'md'),
        ('archive.TAR.GZ', 'gz'),
        ('Dockerfile', 'dockerfile'),
        ('dockerfile.dev', 'dockerfile'),
        ('Makefile', 'makefile'),
        ('makefile.inc', 'makefile'),
        ('.gitignore', 'gitignore'),
        ('LICENSE', ''),
    ],
)
def test_file_extension(name, expected):
    assert filetypes.file_extension(name) == expected


def test_lookup_tables_are_immutable():
    assert isinstance(filetypes.TEXT_EXTENSIONS, frozenset)
    assert isinstance(filetypes.IMAGE_EXTENSIONS, frozenset)


def test_classification():
    assert filetypes.is_text_file('py')
    assert not filetypes.is_text_file('png')
    assert filetypes.is_image_file('svg')
    assert filetypes.image_media_type('svg') == 'image/svg+xml'
    assert filetypes.image_media_type('jpg') == 'image/jpeg'
