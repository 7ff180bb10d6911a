from __future__ import annotations

TEXT_EXTENSIONS = frozenset({
    'txt', 'md', 'markdown', 'json', 'js', 'jsx', 'ts', 'tsx', 'mjs', 'cjs',
    'css', 'html', 'xml', 'yaml', 'yml', 'ini', 'conf',
    'py', 'rb', 'go', 'rs', 'java', 'c', 'cpp', 'h',
    'sh', 'bash', 'zsh', 'sql', 'graphql', 'gql', 'toml',
    'env', 'gitignore', 'eslintrc', 'prettierrc',
    'lock', 'tsconfig', 'dockerfile', 'makefile',
    'proto', 'vue', 'svelte', 'astro',
    'cs', 'kt', 'kts', 'swift', 'php', 'lua', 'scala', 'groovy',
    'clj', 'cljs', 'cljc', 'gradle', 'properties',
})

IMAGE_MEDIA_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'svg': 'image/svg+xml',
    'webp': 'image/webp',
    'bmp': 'image/bmp',
    'ico': 'image/x-icon',
}

IMAGE_EXTENSIONS = frozenset(IMAGE_MEDIA_TYPES)

def file_extension(name: str) -> str:
    lower = name.lower()
    if lower == 'dockerfile' or lower.startswith('dockerfile.'):
        return 'dockerfile'
    if lower == 'makefile' or lower.startswith('makefile.'):
        return 'makefile'
    _, dot, ext = lower.rpartition('.')
    return ext if dot else ''

def is_text_file(ext: str) -> bool:
    return ext in TEXT_EXTENSIONS

def is_image_file(ext: str) -> bool:
    return ext in IMAGE_EXTENSIONS

def image_media_type(ext: str) -> str:
    return IMAGE_MEDIA_TYPES.get(ext, 'application/octet-stream')
