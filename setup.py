from setuptools import setup

setup(
    name             = "worldclone",
    version          = "1.0.0",
    author           = "theJ89",
    description      = "Rebuilds Minecraft worlds chunk by chunk from a saved source world",
    packages         = [ "worldclone", "worldclone.mc" ],
    python_requires  = ">=3.6",
    install_requires = [ "mutf8" ],
    zip_safe         = True
)
