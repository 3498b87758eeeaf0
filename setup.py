from setuptools import setup, find_packages

setup(
    name="connwatch",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "click",
        "psutil",
        "pyobjc-framework-SystemConfiguration; sys_platform == 'darwin'",
        "toml",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "connwatch=connwatch.cli:cli",
        ],
    },
    python_requires=">=3.9",
    author="ConnWatch Contributors",
    description="Network connectivity and connection type watcher",
    long_description="Watches the operating system's network path notifications and reports whether connectivity is usable and which kind of interface carries it.",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: MacOS",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Networking",
        "Topic :: System :: Networking :: Monitoring",
    ],
)
