"""
SUPER Analyzer: Secure, Unified, Powerful and Extensible Android Analyzer.

Audits Android application packages by decompiling them and matching the
resulting sources against vulnerability rules, producing one report per
package with findings classified by criticality.
"""

__version__ = "0.5.1"
__author__ = "SUPER Analyzer Team"
