from setuptools import find_packages, setup

setup(
    name="hdfs-cachetool",
    version="0.1.0",
    description="Register HDFS centralized cache directives for paths matching glob patterns",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "paramiko>=3.0.0",
    ],
    entry_points={
        "console_scripts": [
            "hdfs-cache=hdfs_cachetool.__main__:main",
        ],
    },
    python_requires=">=3.10",
    extras_require={
        "dev": [
            "pytest",
            "build",
            "twine",
        ],
    },
)
