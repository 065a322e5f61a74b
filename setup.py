#!/usr/bin/env -S python3 -B -u
"""
Setup script for routex package - Route table semantics engine and CLI
"""

from setuptools import setup, find_packages
import os

# Read the README file for long description
def read_readme():
    """Read README.md for package long description."""
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "RouteX - Friendly routing table inspection and editing"

# Read requirements from requirements.txt
def read_requirements():
    """Read requirements from requirements.txt file."""
    requirements_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(requirements_path):
        with open(requirements_path, 'r', encoding='utf-8') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return []

# Define package metadata
setup(
    name='routex',
    version='1.0.0',
    description='RouteX - Friendly routing table inspection and editing',
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    author='RouteX',
    author_email='',
    license='MIT',

    # Package structure - use routex namespace
    packages=['routex'] + ['routex.' + pkg for pkg in find_packages(where='src')],
    package_dir={
        'routex': 'src',
    },

    # Include non-Python files
    package_data={
        'routex': [
            '*.yaml',
            '*.yml',
        ],
    },
    include_package_data=True,

    # Python version requirement
    python_requires='>=3.7',

    # Dependencies from requirements.txt
    install_requires=read_requirements(),

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=6.0.0',
            'pytest-cov>=2.0.0',
            'flake8>=3.8.0',
        ],
    },

    # Entry points for command-line scripts
    entry_points={
        'console_scripts': [
            'routex=routex.route_cli:main',
        ],
    },

    # Classification
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Operating System :: MacOS',
        'Operating System :: POSIX :: BSD',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking',
        'Topic :: System :: Systems Administration',
    ],

    # Keywords
    keywords='routing route netstat cidr blackhole reject',
)
