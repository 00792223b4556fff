from src.unitsync.discovery.path_filter import PathFilter, compile_glob, exclude
from src.unitsync.discovery.scanner import LocalDescriptorScanner, ModelResolver, parse_descriptor
from src.unitsync.discovery.collector import ProjectGraphCollector

__all__ = [
    "PathFilter",
    "compile_glob",
    "exclude",
    "LocalDescriptorScanner",
    "ModelResolver",
    "parse_descriptor",
    "ProjectGraphCollector",
]
