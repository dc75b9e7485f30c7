"""Language detection domain service."""

from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Union

UNKNOWN_LANGUAGE = "unknown"


class LanguageDetector:
    """
    Maps source files to language names by extension.

    Rules use the language to decide applicability and to pick a
    boundary scanner; files of unknown language are still reviewed by
    universal rules.
    """

    # Language to extensions mapping
    LANGUAGE_EXTENSIONS = {
        "javascript": [".js", ".jsx", ".mjs", ".cjs"],
        "typescript": [".ts", ".tsx"],
        "python": [".py"],
        "java": [".java"],
        "go": [".go"],
        "rust": [".rs"],
        "cpp": [".cpp", ".cc", ".cxx", ".hpp"],
        "c": [".c", ".h"],
        "csharp": [".cs"],
        "php": [".php"],
        "ruby": [".rb"],
        "swift": [".swift"],
        "kotlin": [".kt"],
        "scala": [".scala"],
    }

    # Extensions to language mapping (reverse)
    EXTENSION_TO_LANGUAGE = {
        ext: lang
        for lang, exts in LANGUAGE_EXTENSIONS.items()
        for ext in exts
    }

    def detect_file_language(self, file_path: Union[str, Path]) -> str:
        """
        Detect the language of a single file.

        Args:
            file_path: Path of the file (need not exist)

        Returns:
            Language name, or "unknown" for unmapped extensions
        """
        extension = Path(file_path).suffix.lower()
        return self.EXTENSION_TO_LANGUAGE.get(extension, UNKNOWN_LANGUAGE)

    def count_files_by_language(self, file_paths: Iterable[Union[str, Path]]) -> Dict[str, int]:
        """Count files per detected language, ignoring unknown files."""
        counts: Counter = Counter()
        for file_path in file_paths:
            if (language := self.detect_file_language(file_path)) != UNKNOWN_LANGUAGE:
                counts[language] += 1
        return dict(counts)

    def detect_primary_language(self, file_paths: Iterable[Union[str, Path]]) -> str:
        """
        Pick the dominant language of a set of files.

        TypeScript wins over JavaScript in mixed front-end projects unless
        one of them covers more than 60% of the files.

        Returns:
            Language name, or "unknown" when no file has a known language
        """
        counts = self.count_files_by_language(file_paths)
        if not counts:
            return UNKNOWN_LANGUAGE

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        primary, primary_count = ranked[0]
        if primary_count / sum(counts.values()) > 0.6:
            return primary
        if "typescript" in counts and "javascript" in counts:
            return "typescript"
        return primary

    def is_supported(self, file_path: Union[str, Path]) -> bool:
        return self.detect_file_language(file_path) != UNKNOWN_LANGUAGE

    def get_supported_languages(self) -> List[str]:
        """
        Get list of supported languages.

        Returns:
            List of language names
        """
        return list(self.LANGUAGE_EXTENSIONS.keys())
