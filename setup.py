"""Setup script for material_resolver package."""

from setuptools import setup, find_packages

setup(
    name='material_resolver',
    version='1.0',
    packages=find_packages(include=['material_resolver', 'material_resolver.*']),
    package_data={
        'material_resolver.config': ['*.yaml'],
        'material_resolver.nuclear_data': ['*.yaml'],
    },
    python_requires='>=3.9',
    install_requires=[
        'numpy>=1.20.0',
        'PyYAML>=5.4',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'material-resolver=material_resolver.cli:main',
        ],
    },
)
