"""
File-type check run before an attachment is uploaded.
"""

from ..core.config import settings

INVALID_FILE_TYPE_MESSAGE = "Type de fichier non valide. Veuillez télécharger un fichier jpg, jpeg ou png"


def allowed_extensions() -> set[str]:
    return {ext.strip().lower().lstrip(".") for ext in settings.allowed_attachment_extensions.split(",") if ext.strip()}


def file_extension(file_name: str | None) -> str | None:
    """Lowercased text after the last dot of the base name, or None"""
    if not file_name:
        return None
    # Browsers report selections as C:\fakepath\name.png
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in base:
        return None
    ext = base.rsplit(".", 1)[-1].lower()
    return ext or None


def validate(file_name: str | None) -> bool:
    """True iff the file name carries one of the accepted image extensions"""
    ext = file_extension(file_name)
    return ext is not None and ext in allowed_extensions()
