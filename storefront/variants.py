from __future__ import annotations

from urllib.parse import parse_qsl

from storefront.schemas import Product, Variant


def get_adjacent_and_first_available_variants(product: Product) -> list[Variant]:
    """The selected-or-first-available variant followed by its adjacent variants, deduplicated."""
    seen: set[str] = set()
    variants: list[Variant] = []
    for variant in [product.default_variant, *product.adjacentVariants]:
        if variant.id in seen:
            continue
        seen.add(variant.id)
        variants.append(variant)
    return variants


def adjacent_variants_by_axis(product: Product) -> dict[str, list[Variant]]:
    """Variants reachable from the default variant by changing exactly one option."""
    base = product.default_variant.option_map()
    by_axis: dict[str, list[Variant]] = {name: [] for name in product.option_names()}
    for variant in product.known_variants():
        options = variant.option_map()
        changed = [name for name, value in base.items() if options.get(name) != value]
        if len(changed) == 1 and changed[0] in by_axis:
            by_axis[changed[0]].append(variant)
    return by_axis


def map_selected_product_options(product: Product, search: str) -> dict[str, str]:
    """URL option values restricted to the product's declared option names."""
    known_names = set(product.option_names())
    selected: dict[str, str] = {}
    for name, value in parse_qsl(search.lstrip("?"), keep_blank_values=True):
        if name in known_names and name not in selected:
            selected[name] = value
    return selected


def _matches(variant: Variant, selected: dict[str, str]) -> bool:
    options = variant.option_map()
    return all(options.get(name) == value for name, value in selected.items())


def _distance(variant: Variant, base: dict[str, str]) -> int:
    options = variant.option_map()
    return sum(1 for name, value in base.items() if options.get(name) != value)


def resolve_optimistic_variant(product: Product, search: str) -> Variant:
    """Pick the variant the URL asks for, falling back to the selected-or-first-available one.

    A partial selection is refined one axis at a time from the default variant,
    so options the URL leaves out keep their default values where possible.
    The result is always one of the product's own variants.
    """
    default_variant = product.default_variant
    selected = map_selected_product_options(product, search)
    if not selected or _matches(default_variant, selected):
        return default_variant

    preferred = {variant.id for variant in get_adjacent_and_first_available_variants(product)}

    def rank(variant: Variant) -> tuple[bool, bool]:
        return not variant.availableForSale, variant.id not in preferred

    neighbours = [
        variant
        for axis_variants in adjacent_variants_by_axis(product).values()
        for variant in axis_variants
        if _matches(variant, selected)
    ]
    if neighbours:
        return min(neighbours, key=rank)

    base = default_variant.option_map()
    candidates = [variant for variant in product.known_variants() if _matches(variant, selected)]
    if candidates:
        return min(candidates, key=lambda variant: (_distance(variant, base), *rank(variant)))
    return default_variant
