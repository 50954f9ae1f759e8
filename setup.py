"""
setup.py

richdoc - import markup trees into a rich-text document model
"""

from typing import List, Optional, Union

from setuptools import find_packages, setup

from richdoc.__version__ import __version__


def load_requirements(file_list: Optional[Union[str, List[str]]] = None) -> List[str]:
    if file_list is None:
        file_list = ["requirements/base.in"]
    if isinstance(file_list, str):
        file_list = [file_list]
    requirements: List[str] = []
    for file in file_list:
        with open(file, encoding="utf-8") as f:
            requirements.extend(f.readlines())
    requirements = [
        req.strip()
        for req in requirements
        if req.strip() and not req.startswith("#") and not req.startswith("-")
    ]
    return requirements


setup(
    name="richdoc",
    description="Converts HTML, Markdown, and other element trees into a rich-text document model.",
    long_description=open("README.md", encoding="utf-8").read(),  # noqa: SIM115
    long_description_content_type="text/markdown",
    keywords="HTML Markdown rich-text editor import document-model",
    python_requires=">=3.9.0",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Text Processing :: Markup :: HTML",
    ],
    packages=find_packages(include=["richdoc", "richdoc.*"]),
    version=__version__,
    install_requires=load_requirements(),
    extras_require={
        "test": load_requirements("requirements/test.in"),
    },
    package_dir={"richdoc": "richdoc"},
)
