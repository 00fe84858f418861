"""esbind destructuring patterns and tagged templates — public API."""

from __future__ import annotations

from .ast import (
    ArrayPattern as ArrayPattern,
    ComputedKey as ComputedKey,
    Default as Default,
    Hole as Hole,
    Name as Name,
    Nested as Nested,
    ObjectPattern as ObjectPattern,
    Pattern as Pattern,
    Rename as Rename,
    RestCapture as RestCapture,
)
from .check import check as check, validate as validate
from .errors import (
    DepthExceeded as DepthExceeded,
    DuplicateBinding as DuplicateBinding,
    DuplicateRest as DuplicateRest,
    EsbindError as EsbindError,
    EvaluationError as EvaluationError,
    ForwardReference as ForwardReference,
    InvalidElement as InvalidElement,
    MatchError as MatchError,
    MisplacedRest as MisplacedRest,
    NotIterable as NotIterable,
    NullishSource as NullishSource,
    PatternError as PatternError,
    TemplateError as TemplateError,
    TemplateShapeError as TemplateShapeError,
    TemplateSyntaxError as TemplateSyntaxError,
    UnboundName as UnboundName,
)
from .evaluate import evaluate as evaluate
from .matcher import Matcher as Matcher, match as match
from .params import bind_arguments as bind_arguments, destructure as destructure
from .parse import (
    ParseError as ParseError,
    parse_expression as parse_expression,
    parse_params as parse_params,
    parse_pattern as parse_pattern,
)
from .render import (
    Template as Template,
    compile_template as compile_template,
    render as render,
    tagged as tagged,
)
from .template import (
    TemplateInvocation as TemplateInvocation,
    TemplateStrings as TemplateStrings,
    interpolate as interpolate,
    invoke as invoke,
    raw as raw,
)
from .tokens import TokenizeError as TokenizeError
from .values import (
    UNDEFINED as UNDEFINED,
    is_nullish as is_nullish,
    to_string as to_string,
)
