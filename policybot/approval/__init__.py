"""Approval rules, the and/or requirement tree, and parsing of the approval policy."""