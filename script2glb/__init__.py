"""
Script to GLB Converter
Extracts mesh arrays from C# Unity scripts and packs them into binary glTF
"""
from .extractor import extract
from .encoder import encode
from .converter import convert_script

__all__ = ["extract", "encode", "convert_script"]
