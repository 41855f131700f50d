from .fuzzy import MATCH_THRESHOLD as MATCH_THRESHOLD, RankedResult as RankedResult, rank as rank, search as search
from .paginator import Page as Page, paginate as paginate
