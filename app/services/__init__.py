from .seo_analyzer import analyze_seo
from .performance_analyzer import analyze_performance
from .security_analyzer import analyze_security
from .audit_engine import perform_full_audit
from .score_calculator import calculate_overall_score
