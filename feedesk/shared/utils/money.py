from num2words import num2words


def format_rupees(amount: int) -> str:
    """
    Format an amount with Indian digit grouping.

    Examples:
        >>> format_rupees(5000)
        'Rs. 5,000'
        >>> format_rupees(1234567)
        'Rs. 12,34,567'
        >>> format_rupees(-250)
        '-Rs. 250'
    """
    sign = "-" if amount < 0 else ""
    digits = str(abs(int(amount)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}Rs. {digits}"


def amount_in_words(amount: int) -> str:
    """Amount in words for receipts (e.g. 2500 -> 'Two Thousand, Five Hundred Rupees Only')."""
    words = num2words(int(amount), lang="en_IN").title()
    return f"{words} Rupees Only"
