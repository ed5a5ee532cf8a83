"""
Internationalization (i18n) module for the crisis allowlist CLI.

Provides translations for all user-facing messages in German (de) and English (en).
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"de", "en"})
DEFAULT_LANGUAGE = "en"


# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Protection decisions
    "status.protected": {
        "de": "Geschützt",
        "en": "Protected",
    },
    "status.not_protected": {
        "de": "Nicht geschützt",
        "en": "Not protected",
    },
    "method.exact": {
        "de": "exakter Treffer",
        "en": "exact match",
    },
    "method.wildcard": {
        "de": "Subdomain eines geschützten Musters",
        "en": "subdomain of a protected pattern",
    },
    "method.fuzzy": {
        "de": "ähnlich zu {domain} (Abstand {distance})",
        "en": "similar to {domain} (distance {distance})",
    },
    "method.none": {
        "de": "kein Treffer",
        "en": "no match",
    },

    # Sync messages
    "sync.updated": {
        "de": "Allowlist aktualisiert auf Version {version}",
        "en": "Allowlist updated to version {version}",
    },
    "sync.unchanged": {
        "de": "Allowlist unverändert ({reason})",
        "en": "Allowlist unchanged ({reason})",
    },
    "sync.emergency": {
        "de": "Notfall-Version aktiv, Aktualisierung stündlich",
        "en": "Emergency version active, refreshing hourly",
    },

    # Status messages
    "status.header": {
        "de": "Allowlist-Status",
        "en": "Allowlist Status",
    },
    "status.version": {
        "de": "Version",
        "en": "Version",
    },
    "status.bundled_only": {
        "de": "nur mitgelieferte Standardliste",
        "en": "bundled defaults only",
    },
    "status.last_sync": {
        "de": "Letzte Synchronisierung",
        "en": "Last sync",
    },
    "status.last_refreshed": {
        "de": "Zuletzt geprüft",
        "en": "Last refreshed",
    },
    "status.never": {
        "de": "nie",
        "en": "never",
    },
    "status.stale": {
        "de": "Veraltet",
        "en": "Stale",
    },
    "status.needs_refresh": {
        "de": "Aktualisierung fällig",
        "en": "Refresh due",
    },
    "status.domains": {
        "de": "Geschützte Hostnamen",
        "en": "Protected hostnames",
    },
    "common.yes": {
        "de": "ja",
        "en": "yes",
    },
    "common.no": {
        "de": "nein",
        "en": "no",
    },

    # Errors
    "error.persistence": {
        "de": "Speicherfehler: {message}",
        "en": "Persistence error: {message}",
    },
    "error.tampering": {
        "de": "Manipulation erkannt: {message}",
        "en": "Tampering detected: {message}",
    },
    "error.unknown": {
        "de": "Unbekannter Fehler: {message}",
        "en": "Unknown error: {message}",
    },

    # Configuration messages
    "config.loaded": {
        "de": "Konfiguration geladen",
        "en": "Configuration loaded",
    },
    "config.invalid": {
        "de": "Ungültige Konfiguration: {error}",
        "en": "Invalid configuration: {error}",
    },
    "config.file_not_found": {
        "de": "Konfigurationsdatei nicht gefunden: {path}",
        "en": "Configuration file not found: {path}",
    },
    "config.file_exists": {
        "de": "Konfigurationsdatei existiert bereits: {path}",
        "en": "Configuration file already exists: {path}",
    },
    "config.created": {
        "de": "Konfigurationsdatei erstellt: {path}",
        "en": "Configuration file created: {path}",
    },
    "config.valid": {
        "de": "Konfiguration ist gültig",
        "en": "Configuration is valid",
    },

    # Self-test messages
    "selftest.header": {
        "de": "Crisis-Allowlist Selbsttest",
        "en": "Crisis Allowlist Self-Test",
    },
    "selftest.config_validation": {
        "de": "Konfigurationsvalidierung:",
        "en": "Configuration Validation:",
    },
    "selftest.config_valid": {
        "de": "Konfiguration ist gültig",
        "en": "Configuration is valid",
    },
    "selftest.config_invalid": {
        "de": "Konfiguration ist ungültig",
        "en": "Configuration is invalid",
    },
    "selftest.warnings": {
        "de": "Warnungen:",
        "en": "Warnings:",
    },
    "selftest.protection": {
        "de": "Schutzprüfungen:",
        "en": "Protection Probes:",
    },
    "selftest.connectivity": {
        "de": "Endpoint-Konnektivität:",
        "en": "Endpoint Connectivity:",
    },
    "selftest.success": {
        "de": "Selbsttest erfolgreich abgeschlossen",
        "en": "Self-test completed successfully",
    },
    "selftest.failed": {
        "de": "Selbsttest fehlgeschlagen",
        "en": "Self-test failed",
    },
    "selftest.duration": {
        "de": "Gesamtdauer",
        "en": "Total duration",
    },

    # CLI messages
    "cli.description": {
        "de": "Allowlist für Krisen-Hilfsangebote: Schutzprüfung und Synchronisierung",
        "en": "Crisis resource allowlist: protection checks and sync",
    },
    "cli.result": {
        "de": "Ergebnis: {status}",
        "en": "Result: {status}",
    },
    "cli.interrupted": {
        "de": "Abgebrochen",
        "en": "Interrupted",
    },
    "cli.version": {
        "de": "Version: {version}",
        "en": "Version: {version}",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'status.protected')
        language: Language code ('de' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('status.protected', 'de')
        'Geschützt'
        >>> get_message('sync.updated', 'en', version='2.0.0')
        'Allowlist updated to version 2.0.0'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language)
    if message is None:
        message = translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # Missing argument: return the template unformatted
            pass

    return message


def get_all_message_keys() -> set[str]:
    return set(TRANSLATIONS.keys())


def get_missing_translations(language: str) -> set[str]:
    """Message keys that have no translation for a language."""
    return {key for key, translations in TRANSLATIONS.items() if language not in translations}


def validate_translations() -> dict[str, set[str]]:
    """
    Validate that all languages have all translations.

    Returns:
        Dictionary mapping language codes to sets of missing message keys.
        Empty sets indicate complete translations.
    """
    return {language: get_missing_translations(language) for language in SUPPORTED_LANGUAGES}
