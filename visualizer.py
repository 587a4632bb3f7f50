import matplotlib.pyplot as plt
import matplotlib.ticker as mtick
import numpy as np

from portfolio import history_to_frame

CATEGORY_LABELS = {
    'VIRTUAL_ASSET': '가상자산',
    'REAL_ESTATE': '부동산',
    'PENSION': '퇴직연금',
    'STOCK': '주식/ETF',
    'LOAN': '대출',
    'CASH': '현금',
}

PALETTE = ['#3b82f6', '#10b981', '#f59e0b', '#6366f1', '#ec4899', '#f43f5e', '#8b5cf6', '#06b6d4']


class Visualizer:
    @staticmethod
    def plot_history(history, path="Net_Worth_History.png", title="Net Worth History"):
        """
        Net worth as a line over stacked asset / liability bars.
        The trend comes from the synthetic variance curve, not stored prices.
        """
        df = history_to_frame(history)
        x = np.arange(len(df))

        fig, ax = plt.subplots(figsize=(12, 7))
        ax.bar(x - 0.2, df['total_assets'], width=0.4, color='#3b82f6', alpha=0.7, label='Assets')
        ax.bar(x + 0.2, df['total_liabilities'], width=0.4, color='#f43f5e', alpha=0.7, label='Liabilities')
        ax.plot(x, df['net_worth'], color='#111827', marker='o', linewidth=2.5, label='Net Worth')

        ax.set_xticks(x)
        ax.set_xticklabels(df.index)
        ax.set_title(title, fontsize=14, pad=15)
        ax.set_ylabel("KRW", fontsize=12)
        ax.yaxis.set_major_formatter(mtick.StrMethodFormatter("{x:,.0f}"))
        ax.grid(True, axis='y', linestyle='--', linewidth=0.5, alpha=0.7)
        ax.legend(loc='upper left')
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        return path

    @staticmethod
    def plot_profit_history(history, path="Profit_History.png"):
        df = history_to_frame(history)

        fig, ax1 = plt.subplots(figsize=(12, 6))
        ax1.plot(df.index, df['total_profit'], color='#10b981', marker='o', linewidth=2, label='Total Profit')
        ax1.set_ylabel("Profit (KRW)", fontsize=12)
        ax1.yaxis.set_major_formatter(mtick.StrMethodFormatter("{x:,.0f}"))

        ax2 = ax1.twinx()
        ax2.plot(df.index, df['total_roi_percent'], color='#6366f1', linestyle='--', linewidth=1.5, label='ROI')
        ax2.set_ylabel("ROI (%)", fontsize=12)
        ax2.yaxis.set_major_formatter(mtick.PercentFormatter())

        ax1.set_title("Profit & ROI History", fontsize=14)
        ax1.grid(True, alpha=0.3)
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        return path

    @staticmethod
    def plot_allocation(breakdown, path="Allocation.png", title="Allocation"):
        """Donut chart from an allocation_breakdown Series."""
        labels = [CATEGORY_LABELS.get(k, k) for k in breakdown.index]
        total = breakdown.sum()

        fig, ax = plt.subplots(figsize=(8, 8))
        ax.pie(breakdown.values, labels=labels, colors=PALETTE[:len(breakdown)] or None,
               autopct='%1.1f%%', startangle=90, wedgeprops=dict(width=0.4))
        ax.text(0, 0, f"{total:,.0f}", ha='center', va='center', fontsize=12, fontweight='bold')
        ax.set_title(title, fontsize=14)
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        return path

    @staticmethod
    def plot_dsr_gauge(dsr_result, path="DSR_Gauge.png"):
        """Horizontal gauge with the bank-limit marker."""
        ratio = dsr_result.ratio_percent
        color = '#dc2626' if dsr_result.is_exceeded else '#2563eb'

        fig, ax = plt.subplots(figsize=(10, 2.5))
        ax.barh([0], [100], color='#f3f4f6', height=0.5)
        ax.barh([0], [min(ratio, 100)], color=color, height=0.5)
        ax.axvline(dsr_result.limit_percent, color='#f87171', linewidth=2)
        ax.text(dsr_result.limit_percent, 0.35, f"BANK LIMIT ({dsr_result.limit_percent:g}%)",
                ha='center', color='#ef4444', fontsize=9, fontweight='bold')

        ax.set_xlim(0, 100)
        ax.set_yticks([])
        ax.xaxis.set_major_formatter(mtick.PercentFormatter())
        ax.set_title(f"DSR {ratio:.2f}%", fontsize=14, color=color)
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        return path
