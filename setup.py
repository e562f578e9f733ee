import os.path

import setuptools

root_dir = os.path.abspath(os.path.dirname(__file__))
readme_file = os.path.join(root_dir, "README.rst")
with open(readme_file, encoding="utf-8") as f:
    long_description = f.read()

setuptools.setup(
    name="aiosignaling",
    version="0.1.0",
    description="A WebRTC signaling relay for asyncio",
    long_description=long_description,
    license="BSD",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ],
    packages=["aiosignaling"],
    python_requires=">=3.9",
    install_requires=["netifaces", "websockets>=14"],
    entry_points={
        "console_scripts": ["aiosignaling = aiosignaling.__main__:main"],
    },
)
