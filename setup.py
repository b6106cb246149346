#!/usr/bin/env python

from setuptools import setup

TEST_REQUIRES = ["pytest", "anyio", "httpx", "fakeredis"]

setup(
    name="filevault",
    version="1.0.0",
    description="API and thumbnail worker for FileVault multi-user file storage",
    packages=["filevault", "filevault.api", "filevault.thumbnails"],
    include_package_data=True,
    zip_safe=False,
    keywords=["API", "files", "storage"],
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Topic :: System :: Filesystems",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "elasticsearch[async]~=8.6",
        "python-dotenv",
        "pydantic>=2",
        "pydantic-settings",
        "redis>=5",
        "pika",
        "Pillow",
        "uvicorn",
    ],
    extras_require={
        "test": TEST_REQUIRES,
        "dev": TEST_REQUIRES + ["mypy", "flake8"],
    },
    entry_points={"console_scripts": ["filevault = filevault.__main__:main"]},
)
