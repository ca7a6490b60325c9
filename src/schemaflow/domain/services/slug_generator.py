"""Slug generator service.

Generates URL-friendly slugs from text, used by slug-interface fields that
mirror another field of the same record.
"""

import re
import unicodedata


class SlugGenerator:
    """Generate URL-friendly slugs.

    Slug rules:
    - ASCII only (accents are folded)
    - Lowercase
    - Alphanumeric runs joined by a single separator
    """

    DEFAULT_SEPARATOR = "-"

    @classmethod
    def generate(cls, text: object, separator: str = DEFAULT_SEPARATOR) -> str:
        """Generate a slug from text.

        Args:
            text: The value to convert. Non-strings are converted with ``str()``;
                None becomes an empty slug.
            separator: String placed between words.

        Returns:
            URL-friendly slug (possibly empty).

        Examples:
            >>> SlugGenerator.generate("Hello World")
            'hello-world'
            >>> SlugGenerator.generate("Crème Brûlée, 2nd Edition!")
            'creme-brulee-2nd-edition'
            >>> SlugGenerator.generate("  spaced   out  ", separator="_")
            'spaced_out'
        """
        if text is None:
            return ""

        # Normalize unicode characters and drop what has no ASCII form
        normalized = unicodedata.normalize("NFKD", str(text))
        ascii_text = normalized.encode("ascii", "ignore").decode("ascii")

        words = re.findall(r"[a-z0-9]+", ascii_text.lower())
        return separator.join(words)


def slugify(text: object, separator: str = SlugGenerator.DEFAULT_SEPARATOR) -> str:
    return SlugGenerator.generate(text, separator)
