from setuptools import setup

setup(
    name="subotx",
    version="1.4.2",  # synced with __version__ in recon/__init__.py
    description="AlienVault OTX domain recon (passive DNS hosts, paginated URL indicators) with API key rotation",
    long_description="See DESIGN.md for details.",
    long_description_content_type="text/markdown",
    license="MIT",
    py_modules=["subotx"],
    packages=["auth", "recon"],
    python_requires=">=3.10",
    install_requires=[
        "requests",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "subotx = subotx:main"
        ]
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Intended Audience :: Information Technology",
        "Topic :: Security",
    ],
)
