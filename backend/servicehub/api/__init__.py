"""Operations exposed to the request layer."""
