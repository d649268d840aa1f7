import re


def sub(sql):
    """Split SQL into words so that layout does not matter."""
    sql = re.sub(r"\s+", " ", sql)
    sql = sql.replace("( ", "(").replace(" )", ")")
    return sql.strip().split(" ")
