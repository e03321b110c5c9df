from .parse import annotate_python_ast, parse_to_ast
from .pre_parser import PreParser, validate_version_pragma
