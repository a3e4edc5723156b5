import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="wdlast",
    version="0.1.0",
    description="Workflow Description Language (WDL) parser producing one canonical syntax tree",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=["WDLAST"],
    package_data={"WDLAST": ["config_templates/*.cfg"]},
    python_requires=">=3.8",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    install_requires=[
        "lark>=1.1.5,<2",
        "regex",
        "python-json-logger>=2,<4",
        "coloredlogs>=15",
        "xdg-base-dirs>=6",
    ],
    extras_require={"test": ["pytest"]},
)
