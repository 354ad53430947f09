from .helius import HeliusOracle, ProviderAsset, map_to_asset_record

__all__ = ["HeliusOracle", "ProviderAsset", "map_to_asset_record"]
