"""
Tests for the attachment file-type check.
"""

import pytest
from src.services.attachment_gate import INVALID_FILE_TYPE_MESSAGE, validate


@pytest.mark.parametrize("name", ["test.jpg", "test.jpeg", "test.png", "TEST.PNG", "photo.JpEg", "a.b.png"])
def test_accepts_image_extensions(name):
    assert validate(name) is True


@pytest.mark.parametrize("name", ["test.pdf", "test.gif", "png", "test", "test.", "", None, "test.png.exe", "jpg.txt"])
def test_rejects_everything_else(name):
    assert validate(name) is False


def test_ignores_browser_fakepath_prefix():
    assert validate("C:\\fakepath\\test.png") is True
    assert validate("C:\\fakepath.png\\test") is False


def test_rejection_message():
    assert INVALID_FILE_TYPE_MESSAGE == "Type de fichier non valide. Veuillez télécharger un fichier jpg, jpeg ou png"
