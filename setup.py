from setuptools import setup, find_packages

setup(
    name='pygl',
    version='0.0.1',
    python_requires='>=3.10',
    install_requires=[
        'numpy',
        'pandas',
        'pytest',
        'consistent_df @ https://github.com/macxred/consistent_df/tarball/main'
    ],
    description=('Python package to build a multi-currency general ledger '
                 'from journal entries, exchange rates and prices.'),
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(),
    extras_require={
        "dev": [
            "flake8",
            "bandit",
        ]
    }
)
