"""Built-in themes offered by the web client."""

from typing import Any, Dict, List

from deck_export.models import Theme

SYSTEM_SANS = '-apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif'


def _fonts(heading: tuple, body: tuple, accent: tuple) -> Dict[str, Dict[str, str]]:
    keys = ('family', 'weight', 'size')
    return {
        'heading': dict(zip(keys, heading)),
        'body': dict(zip(keys, body)),
        'accent': dict(zip(keys, accent)),
    }


# =============================================================================
# THEME CATALOGUE
# =============================================================================

BUILTIN_THEMES: Dict[str, Dict[str, Any]] = {
    'modern-blue': {
        'name': 'Modern Blue',
        'colors': {'primary': '#1e40af', 'secondary': '#1e3a8a', 'accent': '#3b82f6',
                   'background': '#ffffff', 'text': '#000000'},
        'fonts': _fonts(('Libre Baskerville, serif', '400', '1.5rem'),
                        (f'Open Sans, {SYSTEM_SANS}', '400', '1rem'),
                        (f'Open Sans, {SYSTEM_SANS}', '400', '1.125rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-lg', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'creative-gradient': {
        'name': 'Creative Gradient',
        'colors': {'primary': '#333333', 'secondary': '#f3f4f6', 'accent': '#fbbf24',
                   'background': '#ffffff', 'text': '#1f2937'},
        'fonts': _fonts((f'Poppins, {SYSTEM_SANS}', '800', '1.75rem'),
                        (f'Poppins, {SYSTEM_SANS}', '400', '1.125rem'),
                        (f'Poppins, {SYSTEM_SANS}', '600', '1.25rem')),
        'styles': {'borderRadius': 'rounded-xl', 'shadow': 'shadow-xl', 'spacing': 'p-8'},
        'backgroundGradient': 'bg-gradient-to-r from-yellow-50 to-orange-500',
    },
    'minimal-gray': {
        'name': 'Minimal Gray',
        'colors': {'primary': '#374151', 'secondary': '#4b5563', 'accent': '#6b7280',
                   'background': '#e8e8e2', 'text': '#1f2937'},
        'fonts': _fonts((f'Hubot Sans, {SYSTEM_SANS}', '700', '1.5rem'),
                        (f'Roboto Condensed, {SYSTEM_SANS}', '400', '1rem'),
                        (f'Roboto Condensed, {SYSTEM_SANS}', '400', '1.125rem')),
        'styles': {'borderRadius': 'rounded-md', 'shadow': 'shadow-sm', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'business-green': {
        'name': 'Business Green',
        'colors': {'primary': '#047857', 'secondary': '#065f46', 'accent': '#059669',
                   'background': '#ffffff', 'text': '#333333'},
        'fonts': _fonts((f'Kanit, {SYSTEM_SANS}', '300', '1.625rem'),
                        (f'Roboto, {SYSTEM_SANS}', '400', '1.125rem'),
                        (f'Roboto, {SYSTEM_SANS}', '500', '1.25rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-md', 'spacing': 'p-6'},
        'backgroundImage': '/5.jpg',
    },
    'modern-dark': {
        'name': 'Modern Dark',
        'colors': {'primary': '#f9fafb', 'secondary': '#e5e7eb', 'accent': '#d1d5db',
                   'background': '#111827', 'text': '#f9fafb'},
        'fonts': _fonts(('JetBrains Mono, "Fira Code", "Cascadia Code", monospace', '700', '1.5rem'),
                        ('JetBrains Mono, "Fira Code", "Cascadia Code", monospace', '400', '1rem'),
                        ('JetBrains Mono, "Fira Code", "Cascadia Code", monospace', '600', '1.125rem')),
        'styles': {'borderRadius': 'rounded-xl', 'shadow': 'shadow-2xl', 'spacing': 'p-8'},
    },
    'warm-orange': {
        'name': 'Warm Orange',
        'colors': {'primary': '#c2410c', 'secondary': '#9a3412', 'accent': '#ea580c',
                   'background': '#ffffff', 'text': '#1f2937'},
        'fonts': _fonts(('Patrick Hand, cursive, sans-serif', '400', '1.75rem'),
                        ('Patrick Hand, cursive, sans-serif', '400', '1.125rem'),
                        ('Patrick Hand, cursive, sans-serif', '400', '1.25rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-lg', 'spacing': 'p-6'},
        'backgroundImage': '/5.jpg',
    },
    'kraft': {
        'name': 'Kraft',
        'colors': {'primary': '#282824', 'secondary': '#5f5f59', 'accent': '#5f5f59',
                   'background': '#eeece6', 'text': '#5f5f59'},
        'fonts': _fonts((f'Lato, {SYSTEM_SANS}', '700', '1.5rem'),
                        (f'Lato, {SYSTEM_SANS}', '400', '1rem'),
                        (f'Lato, {SYSTEM_SANS}', '400', '1.125rem')),
        'styles': {'borderRadius': 'rounded-md', 'shadow': 'shadow-sm', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'clean-white': {
        'name': 'Clean White',
        'colors': {'primary': '#000000', 'secondary': '#374151', 'accent': '#6b7280',
                   'background': '#ffffff', 'text': '#000000'},
        'fonts': _fonts(('Playfair Display, Georgia, serif', '700', '1.5rem'),
                        (f'Open Sans, {SYSTEM_SANS}', '400', '1rem'),
                        (f'Open Sans, {SYSTEM_SANS}', '500', '1.125rem')),
        'styles': {'borderRadius': 'rounded-md', 'shadow': 'shadow-sm', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'daktilo': {
        'name': 'Daktilo',
        'colors': {'primary': '#151617', 'secondary': '#151617', 'accent': '#151617',
                   'background': '#f8ebe4', 'text': '#151617'},
        'fonts': _fonts((f'Montserrat, {SYSTEM_SANS}', '900', '1.75rem'),
                        ('Inconsolata, "Courier New", monospace', '400', '1rem'),
                        ('Inconsolata, "Courier New", monospace', '400', '1.125rem')),
        'styles': {'borderRadius': 'rounded-none', 'shadow': 'shadow-sm', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'plant-shop': {
        'name': 'Plant Shop',
        'colors': {'primary': '#233e32', 'secondary': '#45423c', 'accent': '#45423c',
                   'background': '#fcfbf7', 'text': '#45423c'},
        'fonts': _fonts(('Alice, serif', '400', '1.75rem'),
                        ('Lora, Georgia, "Times New Roman", serif', '400', '1rem'),
                        ('Lora, Georgia, "Times New Roman", serif', '400', '1.125rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-md', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'corporate-blue': {
        'name': 'Corporate Blue',
        'colors': {'primary': '#1e3a8a', 'secondary': '#3b82f6', 'accent': '#60a5fa',
                   'background': '#ffffff', 'text': '#1e293b'},
        'fonts': _fonts((f'Source Sans Pro, {SYSTEM_SANS}', '700', '1.75rem'),
                        (f'Source Sans Pro, {SYSTEM_SANS}', '400', '1.125rem'),
                        (f'Source Sans Pro, {SYSTEM_SANS}', '600', '1.25rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-lg', 'spacing': 'p-6'},
        'backgroundImage': '/1.jpg',
    },
    'minimalist-black': {
        'name': 'Minimalist Black',
        'colors': {'primary': '#000000', 'secondary': '#1f2937', 'accent': '#374151',
                   'background': '#ffffff', 'text': '#000000'},
        'fonts': _fonts((f'Inter, {SYSTEM_SANS}', '900', '2rem'),
                        (f'Inter, {SYSTEM_SANS}', '300', '1.125rem'),
                        (f'Inter, {SYSTEM_SANS}', '500', '1.25rem')),
        'styles': {'borderRadius': 'rounded-none', 'shadow': 'shadow-none', 'spacing': 'p-8'},
        'backgroundImage': '/1.jpg',
    },
    'luxury-gold': {
        'name': 'Luxury Gold',
        'colors': {'primary': '#92400e', 'secondary': '#b45309', 'accent': '#d97706',
                   'background': '#fefce8', 'text': '#451a03'},
        'fonts': _fonts(('Crimson Text, Georgia, "Times New Roman", serif', '700', '2rem'),
                        ('Crimson Text, Georgia, "Times New Roman", serif', '400', '1.125rem'),
                        ('Crimson Text, Georgia, "Times New Roman", serif', '600', '1.375rem')),
        'styles': {'borderRadius': 'rounded-xl', 'shadow': 'shadow-xl', 'spacing': 'p-8'},
        'backgroundGradient': 'bg-gradient-to-br from-amber-50 to-yellow-100',
    },
    'tech-cyber': {
        'name': 'Tech Cyber',
        'colors': {'primary': '#10b981', 'secondary': '#34d399', 'accent': '#6ee7b7',
                   'background': '#0f172a', 'text': '#10b981'},
        'fonts': _fonts(('Space Grotesk, "Courier New", monospace', '700', '2rem'),
                        ('Space Grotesk, "Courier New", monospace', '400', '1.125rem'),
                        ('Space Grotesk, "Courier New", monospace', '600', '1.375rem')),
        'styles': {'borderRadius': 'rounded-none', 'shadow': 'shadow-2xl', 'spacing': 'p-8'},
        'backgroundGradient': 'bg-gradient-to-br from-slate-900 via-green-900 to-emerald-900',
    },
    'flamingo': {
        'name': 'Flamingo',
        'colors': {'primary': '#1f1e1e', 'secondary': '#5e5858', 'accent': '#e91e63',
                   'background': '#fffafa', 'text': '#5e5858'},
        'fonts': _fonts((f'Red Hat Text, {SYSTEM_SANS}', '400', '1.75rem'),
                        (f'Roboto, {SYSTEM_SANS}', '300', '1.125rem'),
                        (f'Red Hat Text, {SYSTEM_SANS}', '400', '1.25rem')),
        'styles': {'borderRadius': 'rounded-lg', 'shadow': 'shadow-md', 'spacing': 'p-6'},
        'backgroundGradient': 'bg-gradient-to-br from-pink-50 to-rose-100',
    },
}

DEFAULT_THEME_ID = 'modern-blue'


def theme_ids() -> List[str]:
    return list(BUILTIN_THEMES.keys())


def get_theme(theme_id: str) -> Theme:
    """Return a built-in theme, falling back to the default one."""
    key = theme_id if theme_id in BUILTIN_THEMES else DEFAULT_THEME_ID
    return Theme.model_validate({'id': key, **BUILTIN_THEMES[key]})
