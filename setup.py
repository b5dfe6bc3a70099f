"""
fauxapi - Data core for mock REST APIs

Declarative resources, validation, relationship expansion and
JSON-backed collections for mock API servers.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_long_description():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Define optional dependencies
extras_require = {
    # Faster JSON implementations for the json engine (JsonBackendOptions.impl)
    'orjson': [
        'orjson>=3.8.0',
    ],
    'ujson': [
        'ujson>=5.0.0',
    ],

    # Test dependencies
    'test': [
        'pytest>=7.0',
    ],

    # Development dependencies
    'dev': [
        'mypy>=0.950',
        'types-PyYAML>=6.0',
        'build>=0.7.0',
        'twine>=4.0.0',
    ],
}

# All JSON implementations
extras_require['all'] = (
    extras_require['orjson'] +
    extras_require['ujson']
)

# Full development environment
extras_require['full'] = (
    extras_require['all'] +
    extras_require['test'] +
    extras_require['dev']
)

setup(
    name="fauxapi",
    version="0.1.0",
    author="fauxapi contributors",
    author_email="",
    description="Data core for mock REST APIs - declarative resources, validation, relationships, JSON persistence",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['examples', 'examples.*', 'tests', 'tests.*']),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing :: Mocking",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Typing :: Typed",
    ],
    python_requires=">=3.10",

    # Core dependencies
    install_requires=[
        'PyYAML>=6.0',
    ],

    # Optional dependencies
    extras_require=extras_require,

    # Project metadata
    keywords="mock api rest fake-server json database fixtures testing",
)
